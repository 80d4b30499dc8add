from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from storage_proxy.domain.policy_store import PolicyServiceError, PolicyStore
from storage_proxy.infrastructure.clients import ClientBundle

logger = logging.getLogger("storage_proxy.policy")


class IamPolicyService(PolicyStore):
    def __init__(self, bundle: ClientBundle) -> None:
        self._client = bundle.iam

    def get_default_version_id(self, policy_arn: str) -> str:
        try:
            response = self._client.get_policy(PolicyArn=policy_arn)
        except (ClientError, BotoCoreError) as exc:
            raise PolicyServiceError(f"error checking policy {policy_arn}: {exc}") from exc

        version_id = response.get("Policy", {}).get("DefaultVersionId")
        if not version_id:
            raise PolicyServiceError(f"policy {policy_arn} has no default version")
        return version_id

    def get_policy_document(self, policy_arn: str, version_id: str) -> str | dict[str, Any]:
        try:
            response = self._client.get_policy_version(PolicyArn=policy_arn, VersionId=version_id)
        except (ClientError, BotoCoreError) as exc:
            raise PolicyServiceError(f"error retrieving version {version_id} of policy {policy_arn}: {exc}") from exc

        # boto3 usually hands back a decoded mapping; raw API responses carry URL-encoded text.
        document = response.get("PolicyVersion", {}).get("Document")
        if document is None:
            raise PolicyServiceError(f"version {version_id} of policy {policy_arn} has no document")
        return document

    def create_policy_version(self, policy_arn: str, document: str, set_as_default: bool = True) -> str:
        try:
            response = self._client.create_policy_version(
                PolicyArn=policy_arn,
                PolicyDocument=document,
                SetAsDefault=set_as_default,
            )
        except (ClientError, BotoCoreError) as exc:
            raise PolicyServiceError(f"error creating a new version of policy {policy_arn}: {exc}") from exc

        version_id = response.get("PolicyVersion", {}).get("VersionId", "")
        logger.info("created version %s of policy %s (default=%s)", version_id, policy_arn, set_as_default)
        return version_id
