from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from storage_proxy.domain.object_store import ObjectStore, ObjectSummary, StorageError
from storage_proxy.domain.policy_document import PolicyDocumentError, bucket_arn, decode_policy_document
from storage_proxy.domain.policy_store import PolicyServiceError, PolicyStore

logger = logging.getLogger("storage_proxy.bootstrap")


class BootstrapError(RuntimeError):
    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step


class BootstrapOutcome(str, Enum):
    EXISTING_BUCKET = "existing_bucket"
    PROVISIONED = "provisioned"


@dataclass
class BootstrapResult:
    outcome: BootstrapOutcome
    bucket: str
    objects: list[ObjectSummary] = field(default_factory=list)
    statements_updated: int = 0
    policy_version_id: str | None = None


class BootstrapUseCase:
    """Reconcile bucket existence with the IAM policy granting access to it.

    An existing bucket is taken as proof that an earlier run already patched
    the policy, so only a missing bucket triggers creation and a new policy
    version. Every failure is raised as BootstrapError naming the step.
    """

    def __init__(self, storage: ObjectStore, policies: PolicyStore) -> None:
        self._storage = storage
        self._policies = policies

    def execute(self, bucket: str, region: str, policy_arn: str, partition: str = "aws") -> BootstrapResult:
        with _step("check_bucket"):
            exists = self._storage.bucket_exists(bucket)

        if exists:
            return self._list_and_report(bucket)

        with _step("create_bucket"):
            self._storage.create_bucket(bucket, region)
        logger.info("created bucket %s in region %s", bucket, region)

        with _step("fetch_policy"):
            version_id = self._policies.get_default_version_id(policy_arn)
        logger.info("checked existing policy %s (default version %s)", policy_arn, version_id)

        with _step("fetch_policy_version"):
            raw_document = self._policies.get_policy_document(policy_arn, version_id)
            document = decode_policy_document(raw_document)
        logger.info("decoded policy version %s", version_id)

        arn = bucket_arn(bucket, partition)
        updated = document.add_resource(arn)
        if updated:
            logger.info("added resource %s to %d policy statement(s)", arn, updated)
        else:
            logger.warning("no policy statement carries a resource list accepting %s", arn)

        with _step("publish_policy_version"):
            new_version_id = self._policies.create_policy_version(policy_arn, document.to_json(), set_as_default=True)

        return BootstrapResult(
            outcome=BootstrapOutcome.PROVISIONED,
            bucket=bucket,
            statements_updated=updated,
            policy_version_id=new_version_id,
        )

    def _list_and_report(self, bucket: str) -> BootstrapResult:
        with _step("list_objects"):
            objects = self._storage.list_objects(bucket)

        logger.info("bucket %s already exists with %d object(s)", bucket, len(objects))
        for obj in objects:
            logger.info("key=%s size=%d", obj.key, obj.size)
        return BootstrapResult(outcome=BootstrapOutcome.EXISTING_BUCKET, bucket=bucket, objects=objects)


@contextmanager
def _step(name: str) -> Iterator[None]:
    try:
        yield
    except (StorageError, PolicyServiceError, PolicyDocumentError) as exc:
        raise BootstrapError(name, str(exc)) from exc
