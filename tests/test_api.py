from conftest import AGENCY_ID, OWNER_ID, USER_ID, add_compliance, auth_headers

AGENCY_URL = f"/api/v1/admin/agencies/{AGENCY_ID}"
COMPLIANCE_URL = f"{AGENCY_URL}/compliance"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_token_is_unauthorized(client):
    response = client.patch(AGENCY_URL, json={"name": "New Name"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_bad_token_is_unauthorized(client):
    response = client.patch(
        AGENCY_URL, json={"name": "New Name"}, headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


def test_non_admin_is_forbidden(client):
    for caller in (USER_ID, OWNER_ID, "unknown-profile"):
        response = client.patch(AGENCY_URL, json={"name": "New Name"}, headers=auth_headers(caller))
        assert response.status_code == 403
        assert response.json()["error"] == {"code": "FORBIDDEN", "message": "Admin access required"}


def test_patch_without_fields(client):
    response = client.patch(AGENCY_URL, json={}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert response.json()["error"]["message"] == "No fields provided to update"


def test_patch_fields_only_omits_relation_keys(client):
    response = client.patch(
        AGENCY_URL, json={"name": "Acme Labor", "founded_year": "1998"}, headers=auth_headers()
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Agency updated successfully"
    assert set(body["data"]) == {"agency"}
    assert body["data"]["agency"]["name"] == "Acme Labor"
    assert body["data"]["agency"]["founded_year"] == 1998


def test_patch_trades_only_returns_trades(client):
    response = client.patch(
        AGENCY_URL,
        json={"trade_ids": ["trade-plumber", "trade-electrician"]},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert set(data) == {"agency", "trades"}
    assert [t["name"] for t in data["trades"]] == ["Electrician", "Plumber"]


def test_patch_invalid_trade_ids(client):
    response = client.patch(
        AGENCY_URL, json={"trade_ids": ["trade-welder", "nope"]}, headers=auth_headers()
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"] == {"invalid_trade_ids": ["nope"]}


def test_patch_field_format_error(client):
    response = client.patch(AGENCY_URL, json={"phone": "call me"}, headers=auth_headers())
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]


def test_patch_unknown_agency(client):
    response = client.patch(
        "/api/v1/admin/agencies/missing", json={"name": "Whatever"}, headers=auth_headers()
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_document_lifecycle_over_http(client, storage, dispatcher):
    response = client.post(
        f"{COMPLIANCE_URL}/document",
        files={"file": ("coi.pdf", b"%PDF-1.4 test", "application/pdf")},
        data={"compliance_type": "general_liability"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    url = response.json()["data"]["document_url"]
    assert url.startswith("https://storage.test/")

    listed = client.get(COMPLIANCE_URL, headers=auth_headers()).json()["data"]
    assert [(r["compliance_type"], r["state"]) for r in listed] == [
        ("general_liability", "pending_review")
    ]

    response = client.post(
        f"{COMPLIANCE_URL}/verify",
        json={"complianceType": "general_liability", "action": "verify"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["is_verified"] is True
    assert response.json()["data"]["state"] == "verified"

    response = client.post(
        f"{COMPLIANCE_URL}/verify",
        json={
            "complianceType": "general_liability",
            "action": "reject",
            "reason": "Document is not legible",
        },
        headers=auth_headers(),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["data"]["document_url"] is None
    assert body["data"]["is_verified"] is False
    assert body["message"].endswith("Agency owner has been notified.")
    assert len(dispatcher.sent) == 1
    assert storage.objects == {}


def test_reject_reports_failed_notification(client, seeded, dispatcher):
    add_compliance(seeded, document_url="a/general_liability/1.pdf", is_verified=True)
    dispatcher.fail = True

    response = client.post(
        f"{COMPLIANCE_URL}/verify",
        json={
            "complianceType": "general_liability",
            "action": "reject",
            "reason": "Document is not legible",
        },
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json()["message"].endswith("Agency owner could not be notified.")


def test_reject_reason_too_short(client, seeded):
    add_compliance(seeded, document_url="a/general_liability/1.pdf")
    response = client.post(
        f"{COMPLIANCE_URL}/verify",
        json={"complianceType": "general_liability", "action": "reject", "reason": "bad"},
        headers=auth_headers(),
    )
    assert response.status_code == 400
    assert "currently 3 characters" in response.json()["error"]["message"]


def test_upload_rejects_bad_file_type(client):
    response = client.post(
        f"{COMPLIANCE_URL}/document",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"compliance_type": "general_liability"},
        headers=auth_headers(),
    )
    assert response.status_code == 400


def test_upload_requires_compliance_type(client):
    response = client.post(
        f"{COMPLIANCE_URL}/document",
        files={"file": ("coi.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers(),
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid or missing compliance_type"


def test_upload_storage_outage(client, storage):
    storage.fail_upload = True
    response = client.post(
        f"{COMPLIANCE_URL}/document",
        files={"file": ("coi.pdf", b"%PDF-1.4", "application/pdf")},
        data={"compliance_type": "drug_testing"},
        headers=auth_headers(),
    )
    assert response.status_code == 502
    assert response.json()["error"]["code"] == "STORAGE_ERROR"


def test_delete_document(client, seeded, storage):
    add_compliance(seeded, document_url=f"{AGENCY_ID}/general_liability/1.pdf", is_active=True)

    response = client.delete(
        f"{COMPLIANCE_URL}/document",
        params={"compliance_type": "general_liability"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json() == {"data": {"document_url": None}}
    assert storage.removed == [f"{AGENCY_ID}/general_liability/1.pdf"]

    listed = client.get(COMPLIANCE_URL, headers=auth_headers()).json()["data"]
    assert listed[0]["is_active"] is True
    assert listed[0]["state"] == "no_document"


def test_delete_requires_compliance_type(client):
    response = client.delete(f"{COMPLIANCE_URL}/document", headers=auth_headers())
    assert response.status_code == 400


def test_update_settings(client, seeded):
    add_compliance(seeded, document_url="a/general_liability/1.pdf")
    response = client.put(
        COMPLIANCE_URL,
        json={
            "items": [
                {"type": "general_liability", "isActive": True, "isVerified": True},
                {"type": "drug_testing", "isActive": True, "expirationDate": "2026-12-31"},
            ]
        },
        headers=auth_headers(),
    )
    assert response.status_code == 200
    rows = {r["compliance_type"]: r for r in response.json()["data"]}
    assert rows["general_liability"]["state"] == "verified"
    assert rows["drug_testing"]["expiration_date"] == "2026-12-31"
    assert rows["drug_testing"]["state"] == "no_document"


def test_update_settings_rejects_non_boolean(client):
    response = client.put(
        COMPLIANCE_URL,
        json={"items": [{"type": "drug_testing", "isActive": "yes"}]},
        headers=auth_headers(),
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_update_settings_requires_admin(client):
    response = client.put(COMPLIANCE_URL, json={"items": []}, headers=auth_headers(USER_ID))
    assert response.status_code == 403
