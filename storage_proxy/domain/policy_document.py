"""
Typed model of an IAM policy document.

Only the parts the bootstrap touches are modelled: the statement list and each
statement's optional resource list. Every other key is kept as an extra field
so a document survives a parse/serialize round-trip without losing conditions,
principals or sids. Shapes the model does not recognise (a statement that is
not an object, a non-list resource) are carried through untouched.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PolicyDocumentError(ValueError):
    pass


class PolicyStatement(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    resource: list[Any] | Any = Field(default=None, alias="Resource")

    def add_resource(self, arn: str) -> bool:
        if not isinstance(self.resource, list):
            return False
        if arn in self.resource:
            return False
        self.resource.append(arn)
        return True


class PolicyDocument(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: Any = Field(default=None, alias="Version")
    statement: list[PolicyStatement | Any] | PolicyStatement | Any = Field(default=None, alias="Statement")

    @field_validator("statement", mode="before")
    @classmethod
    def _parse_statements(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return PolicyStatement.model_validate(value)
        if isinstance(value, list):
            return [PolicyStatement.model_validate(item) if isinstance(item, dict) else item for item in value]
        return value

    @property
    def statements(self) -> list[PolicyStatement]:
        if isinstance(self.statement, PolicyStatement):
            return [self.statement]
        if isinstance(self.statement, list):
            return [item for item in self.statement if isinstance(item, PolicyStatement)]
        return []

    def add_resource(self, arn: str) -> int:
        """Append arn to every statement carrying a resource list; return how many changed.

        Statements whose resource is missing or not a list are left alone, as
        are lists that already hold arn.
        """
        return sum(1 for statement in self.statements if statement.add_resource(arn))

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_unset=True), separators=(",", ":"))


def bucket_arn(bucket: str, partition: str = "aws") -> str:
    return f"arn:{partition}:s3:::{bucket}"


def decode_policy_document(raw: str | dict[str, Any]) -> PolicyDocument:
    if isinstance(raw, str):
        try:
            payload = json.loads(unquote(raw))
        except json.JSONDecodeError as exc:
            raise PolicyDocumentError(f"policy document is not valid JSON: {exc}") from exc
    else:
        payload = raw

    if not isinstance(payload, dict):
        raise PolicyDocumentError("policy document must be a JSON object")
    return PolicyDocument.model_validate(payload)
