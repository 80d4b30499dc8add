from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class PolicyServiceError(RuntimeError):
    pass


class PolicyStore(ABC):
    @abstractmethod
    def get_default_version_id(self, policy_arn: str) -> str:
        """Return the id of the policy's current default version."""

    @abstractmethod
    def get_policy_document(self, policy_arn: str, version_id: str) -> str | dict[str, Any]:
        """Return the version document, URL-encoded JSON text or an already decoded mapping."""

    @abstractmethod
    def create_policy_version(self, policy_arn: str, document: str, set_as_default: bool = True) -> str:
        """Publish document as a new version and return its id."""
