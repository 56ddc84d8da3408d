import asyncio

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from staffing_api.core.exceptions import StorageError
from staffing_api.services.storage import ObjectStorage

BUCKET = "agency-compliance"


def _client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        endpoint_url="https://s3.test",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


@pytest.fixture
def s3():
    client = _client()
    with Stubber(client) as stubber:
        yield client, stubber


class UnreachableClient:
    def put_object(self, **kwargs):
        raise EndpointConnectionError(endpoint_url="https://s3.test")

    def delete_objects(self, **kwargs):
        raise EndpointConnectionError(endpoint_url="https://s3.test")


class BlankUrlClient:
    def generate_presigned_url(self, *args, **kwargs):
        return ""


def test_upload_puts_object(s3):
    client, stubber = s3
    stubber.add_response(
        "put_object",
        {},
        {
            "Bucket": BUCKET,
            "Key": "a-1/drug_testing/1.pdf",
            "Body": b"%PDF",
            "ContentType": "application/pdf",
        },
    )

    storage = ObjectStorage(BUCKET, client)
    asyncio.run(storage.upload("a-1/drug_testing/1.pdf", b"%PDF", "application/pdf"))
    stubber.assert_no_pending_responses()


def test_upload_client_error(s3):
    client, stubber = s3
    stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(StorageError, match="Failed to upload document"):
        asyncio.run(ObjectStorage(BUCKET, client).upload("a-1/x.pdf", b"%PDF", "application/pdf"))


def test_remove_deletes_quietly(s3):
    client, stubber = s3
    stubber.add_response(
        "delete_objects",
        {},
        {"Bucket": BUCKET, "Delete": {"Objects": [{"Key": "a-1/x.pdf"}], "Quiet": True}},
    )

    asyncio.run(ObjectStorage(BUCKET, client).remove(["a-1/x.pdf"]))
    stubber.assert_no_pending_responses()


def test_remove_nothing_skips_the_call(s3):
    client, stubber = s3
    asyncio.run(ObjectStorage(BUCKET, client).remove([]))
    stubber.assert_no_pending_responses()


def test_remove_client_error(s3):
    client, stubber = s3
    stubber.add_client_error("delete_objects", service_error_code="InternalError", http_status_code=500)

    with pytest.raises(StorageError, match="Failed to delete document"):
        asyncio.run(ObjectStorage(BUCKET, client).remove(["a-1/x.pdf"]))


def test_connection_errors_become_storage_errors():
    storage = ObjectStorage(BUCKET, UnreachableClient())
    with pytest.raises(StorageError, match="Failed to upload document"):
        asyncio.run(storage.upload("a-1/x.pdf", b"%PDF", "application/pdf"))
    with pytest.raises(StorageError, match="Failed to delete document"):
        asyncio.run(storage.remove(["a-1/x.pdf"]))


def test_signed_url_round_trips_to_key():
    storage = ObjectStorage(BUCKET, _client())

    url = asyncio.run(storage.create_signed_url("a-1/drug_testing/1.pdf", 3600))

    assert url.startswith(f"https://s3.test/{BUCKET}/a-1/drug_testing/1.pdf?")
    assert "X-Amz-Expires=3600" in url
    assert storage.path_from_url(url) == "a-1/drug_testing/1.pdf"


def test_blank_signed_url_is_an_error():
    with pytest.raises(StorageError, match="Failed to generate document URL"):
        asyncio.run(ObjectStorage(BUCKET, BlankUrlClient()).create_signed_url("a-1/x.pdf", 60))
