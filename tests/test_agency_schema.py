from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from staffing_api.schemas.agency import AgencyUpdate


def test_blank_strings_become_null():
    data = AgencyUpdate(description="", website="  ")
    assert data.description is None
    assert data.website is None
    assert data.scalar_fields() == {"description": None, "website": None}


def test_only_sent_fields_are_written():
    data = AgencyUpdate(offers_per_diem=True, trade_ids=["t-1"])
    assert data.scalar_fields() == {"offers_per_diem": True}
    assert data.trade_ids == ["t-1"]
    assert data.region_ids is None


@pytest.mark.parametrize("value, expected", [("1995", 1995), (2001, 2001), ("", None)])
def test_founded_year_accepts_string_or_int(value, expected):
    assert AgencyUpdate(founded_year=value).founded_year == expected


@pytest.mark.parametrize("value", ["1799", "95", "abcd", str(datetime.now(timezone.utc).year + 1)])
def test_founded_year_out_of_range(value):
    with pytest.raises(ValidationError, match="founded_year"):
        AgencyUpdate(founded_year=value)


def test_enumerated_fields():
    data = AgencyUpdate(employee_count="51-100", company_size="Medium")
    assert data.employee_count == "51-100"
    with pytest.raises(ValidationError):
        AgencyUpdate(employee_count="lots")
    with pytest.raises(ValidationError):
        AgencyUpdate(company_size="Huge")


def test_contact_formats():
    AgencyUpdate(website="https://acme.example", phone="+15551234567", email="hi@acme.example")
    with pytest.raises(ValidationError, match="website"):
        AgencyUpdate(website="acme.example")
    with pytest.raises(ValidationError, match="E.164"):
        AgencyUpdate(phone="555-123-4567")
    with pytest.raises(ValidationError, match="email"):
        AgencyUpdate(email="not-an-email")


def test_name_length_and_required():
    with pytest.raises(ValidationError, match="between 2 and 200"):
        AgencyUpdate(name="A")
    with pytest.raises(ValidationError, match="name cannot be empty"):
        AgencyUpdate(name="")
    with pytest.raises(ValidationError, match="is_union cannot be empty"):
        AgencyUpdate(is_union=None)


def test_audit_columns_are_ignored():
    data = AgencyUpdate(name="Acme", last_edited_by="someone")
    assert data.scalar_fields() == {"name": "Acme"}
