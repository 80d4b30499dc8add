from __future__ import annotations

from typing import BinaryIO

from botocore.exceptions import BotoCoreError, ClientError

from storage_proxy.domain.object_store import ObjectStore, ObjectSummary, StorageError
from storage_proxy.infrastructure.clients import ClientBundle

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}

# CreateBucket rejects us-east-1 as an explicit location constraint.
_DEFAULT_REGION = "us-east-1"


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStorage(ObjectStore):
    def __init__(self, bundle: ClientBundle) -> None:
        self._client = bundle.s3
        self._presigner = bundle.presigner

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_BUCKET_CODES:
                return False
            raise StorageError(f"error accessing bucket {bucket}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"error accessing bucket {bucket}: {exc}") from exc
        return True

    def create_bucket(self, bucket: str, region: str) -> None:
        params: dict = {"Bucket": bucket}
        if region and region != _DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            self._client.create_bucket(**params)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"couldn't create bucket {bucket} in region {region}: {exc}") from exc

    def list_objects(self, bucket: str) -> list[ObjectSummary]:
        try:
            response = self._client.list_objects_v2(Bucket=bucket)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"error listing objects in bucket {bucket}: {exc}") from exc
        return [ObjectSummary(key=obj["Key"], size=int(obj.get("Size", 0))) for obj in response.get("Contents", [])]

    def put_object(self, bucket: str, key: str, stream: BinaryIO) -> None:
        try:
            self._client.put_object(Bucket=bucket, Key=key, Body=stream)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"error uploading {key} to bucket {bucket}: {exc}") from exc

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"error deleting {key} from bucket {bucket}: {exc}") from exc

    def object_exists(self, bucket: str, key: str) -> bool:
        try:
            self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                return False
            raise StorageError(f"error retrieving {key} from bucket {bucket}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"error retrieving {key} from bucket {bucket}: {exc}") from exc
        return True

    def presigned_get_url(self, bucket: str, key: str, ttl_seconds: int) -> str:
        try:
            return self._presigner.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"error creating presigned url for {key}: {exc}") from exc
