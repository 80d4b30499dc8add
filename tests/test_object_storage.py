from __future__ import annotations

import io
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from storage_proxy.config import Settings
from storage_proxy.domain.object_store import ObjectSummary, StorageError
from storage_proxy.infrastructure.clients import ClientBundle, build_client_bundle
from storage_proxy.infrastructure.object_storage import S3ObjectStorage

REGION = 'eu-west-2'
BUCKET = 'data-bucket'


@pytest.fixture(autouse=True)
def aws_env(monkeypatch) -> None:
    monkeypatch.setenv('AWS_DEFAULT_REGION', REGION)
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')


def _settings(**overrides) -> Settings:
    values = {'aws_access_key': 'testing', 'aws_secret_key': 'testing', 'aws_region': REGION, 'bucket_name': BUCKET}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def storage():
    with mock_aws():
        yield S3ObjectStorage(build_client_bundle(_settings()))


def test_bucket_exists_false_for_missing_bucket(storage) -> None:
    assert storage.bucket_exists(BUCKET) is False


def test_create_bucket_then_exists(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    assert storage.bucket_exists(BUCKET) is True

    location = boto3.client('s3', region_name=REGION).get_bucket_location(Bucket=BUCKET)
    assert location['LocationConstraint'] == REGION


def test_create_bucket_in_default_region() -> None:
    with mock_aws():
        storage = S3ObjectStorage(build_client_bundle(_settings(aws_region='us-east-1')))
        storage.create_bucket('east-bucket', 'us-east-1')
        assert storage.bucket_exists('east-bucket') is True


def test_create_bucket_error_names_bucket_and_region(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    with pytest.raises(StorageError) as exc_info:
        storage.create_bucket(BUCKET, REGION)
    assert BUCKET in str(exc_info.value)
    assert REGION in str(exc_info.value)


def test_bucket_exists_raises_for_other_failures() -> None:
    s3 = MagicMock()
    s3.head_bucket.side_effect = ClientError({'Error': {'Code': '403', 'Message': 'Forbidden'}}, 'HeadBucket')
    storage = S3ObjectStorage(ClientBundle(s3=s3, iam=MagicMock(), presigner=s3))

    with pytest.raises(StorageError):
        storage.bucket_exists(BUCKET)


def test_put_and_list_objects(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    storage.put_object(BUCKET, 'a.txt', io.BytesIO(b'hello'))
    storage.put_object(BUCKET, 'b.txt', io.BytesIO(b'hi'))

    assert storage.list_objects(BUCKET) == [ObjectSummary('a.txt', 5), ObjectSummary('b.txt', 2)]


def test_list_objects_empty_bucket(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    assert storage.list_objects(BUCKET) == []


def test_put_object_overwrites(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    storage.put_object(BUCKET, 'a.txt', io.BytesIO(b'first'))
    storage.put_object(BUCKET, 'a.txt', io.BytesIO(b'second!'))

    body = boto3.client('s3', region_name=REGION).get_object(Bucket=BUCKET, Key='a.txt')['Body'].read()
    assert body == b'second!'


def test_put_object_into_missing_bucket(storage) -> None:
    with pytest.raises(StorageError):
        storage.put_object('no-such-bucket', 'a.txt', io.BytesIO(b'x'))


def test_object_exists(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    storage.put_object(BUCKET, 'a.txt', io.BytesIO(b'hello'))

    assert storage.object_exists(BUCKET, 'a.txt') is True


def test_object_exists_false_for_missing_key(storage) -> None:
    # A "not found" probe reports absence rather than presence.
    storage.create_bucket(BUCKET, REGION)
    assert storage.object_exists(BUCKET, 'missing.txt') is False


def test_delete_object_is_idempotent(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    storage.put_object(BUCKET, 'a.txt', io.BytesIO(b'hello'))

    storage.delete_object(BUCKET, 'a.txt')
    storage.delete_object(BUCKET, 'a.txt')

    assert storage.object_exists(BUCKET, 'a.txt') is False


def test_presigned_get_url(storage) -> None:
    storage.create_bucket(BUCKET, REGION)
    url = storage.presigned_get_url(BUCKET, 'a.txt', 900)

    assert 'a.txt' in url
    assert 'X-Amz-Signature=' in url
    assert 'X-Amz-Expires=900' in url


def test_presigned_url_uses_public_endpoint() -> None:
    with mock_aws():
        storage = S3ObjectStorage(build_client_bundle(_settings(s3_public_endpoint_url='https://files.example.com')))
        url = storage.presigned_get_url(BUCKET, 'a.txt', 60)

    assert 'files.example.com' in url
