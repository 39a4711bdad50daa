"""Tests for S3ObjectStore with the boto3 pieces mocked out."""

from pathlib import Path
from unittest.mock import MagicMock, patch

from repo_storage import S3ObjectStore
from repo_storage.object_store import DEFAULT_CONTENT_TYPE
from repo_storage.transfer import S3TransferHandle


def store_with_mocks():
    store = S3ObjectStore(region="eu-west-1")
    store._client = MagicMock()
    store._transfer_manager = MagicMock()
    return store


class TestS3ObjectStore:
    """Test S3ObjectStore."""

    def test_construction_is_lazy(self):
        with patch("repo_storage.object_store.boto3") as boto3_mock:
            S3ObjectStore(region="eu-west-1")
            boto3_mock.session.Session.assert_not_called()

    def test_client_uses_region_and_endpoint(self):
        with patch("repo_storage.object_store.boto3") as boto3_mock:
            store = S3ObjectStore(region="eu-west-1", endpoint_url="http://localhost:9000")
            client = store.client

            boto3_mock.session.Session.assert_called_once_with(region_name="eu-west-1")
            session = boto3_mock.session.Session.return_value
            session.client.assert_called_once_with("s3", endpoint_url="http://localhost:9000")
            assert client is session.client.return_value

            # Created once
            assert store.client is client
            assert boto3_mock.session.Session.call_count == 1

    def test_transfer_manager_built_on_client(self):
        with patch("repo_storage.object_store.create_transfer_manager") as factory:
            store = S3ObjectStore()
            store._client = MagicMock()

            manager = store.transfer_manager

            factory.assert_called_once_with(store._client, store.transfer_config)
            assert manager is factory.return_value

    def test_transfer_manager_kept_for_store_lifetime(self):
        with patch("repo_storage.object_store.create_transfer_manager") as factory:
            store = S3ObjectStore()
            store._client = MagicMock()

            store.download(Path("/tmp/a.zip"), "packages", "a.zip")
            store.upload(Path("/tmp/b.zip"), "packages", "b.zip")

            assert factory.call_count == 1
            factory.return_value.shutdown.assert_not_called()
            assert not hasattr(store, "shutdown")

    def test_download(self):
        store = store_with_mocks()
        handle = store.download(Path("/cache/x/y.zip"), "packages", "x/y.zip")

        store._transfer_manager.download.assert_called_once_with("packages", "x/y.zip", "/cache/x/y.zip")
        assert isinstance(handle, S3TransferHandle)
        assert "s3://packages/x/y.zip" in handle.description

    def test_upload_default_content_type(self):
        store = store_with_mocks()
        store.upload(Path("/cache/lib.zip"), "packages", "lib.zip")

        store._transfer_manager.upload.assert_called_once_with(
            "/cache/lib.zip", "packages", "lib.zip",
            extra_args={"ContentType": DEFAULT_CONTENT_TYPE},
        )

    def test_upload_custom_content_type(self):
        store = store_with_mocks()
        store.upload(Path("/cache/index.json"), "packages", "index.json", "application/json")

        _, kwargs = store._transfer_manager.upload.call_args
        assert kwargs["extra_args"] == {"ContentType": "application/json"}

    def test_delete(self):
        store = store_with_mocks()
        store.delete("packages", "lib.zip")
        store._client.delete_object.assert_called_once_with(Bucket="packages", Key="lib.zip")

    def test_default_content_type(self):
        assert DEFAULT_CONTENT_TYPE == "application/octet-stream"
