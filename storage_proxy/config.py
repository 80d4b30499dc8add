from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

logger = logging.getLogger("storage_proxy.config")


class ConfigurationError(RuntimeError):
    pass


def _env_optional(name: str) -> str | None:
    return field(default_factory=lambda: os.getenv(name))


def _env(name: str, default: str) -> str:
    return field(default_factory=lambda: os.getenv(name, default))


def _env_int(name: str, default: int) -> int:
    return field(default_factory=lambda: int(os.getenv(name, str(default))))


@dataclass(frozen=True)
class Settings:
    aws_access_key: str | None = _env_optional("AWS_ACCESS_KEY")
    aws_secret_key: str | None = _env_optional("AWS_SECRET_KEY")
    aws_region: str | None = _env_optional("AWS_REGION")
    aws_partition: str = _env("AWS_PARTITION", "aws")

    bucket_name: str = _env("AWS_BUCKET_NAME", "")
    policy_arn: str = _env("AWS_POLICY_ARN", "")

    s3_endpoint_url: str | None = _env_optional("S3_ENDPOINT_URL")
    s3_public_endpoint_url: str | None = _env_optional("S3_PUBLIC_ENDPOINT_URL")
    s3_addressing_style: str = _env("S3_ADDRESSING_STYLE", "auto")

    http_host: str = _env("HTTP_HOST", "127.0.0.1")
    http_port: int = _env_int("HTTP_PORT", 3000)
    http_timeout_seconds: int = _env_int("HTTP_TIMEOUT_SECONDS", 15)

    max_upload_bytes: int = _env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
    presigned_url_ttl_seconds: int = _env_int("PRESIGNED_URL_TTL_SECONDS", 15 * 60)
    presigned_object_key: str = _env("PRESIGNED_OBJECT_KEY", "example.txt")
    delete_object_key: str = _env("DELETE_OBJECT_KEY", "example.txt")

    log_level: str = _env("LOG_LEVEL", "INFO")

    def validate(self) -> Settings:
        missing = [
            name
            for name, value in (
                ("AWS_ACCESS_KEY", self.aws_access_key),
                ("AWS_SECRET_KEY", self.aws_secret_key),
                ("AWS_REGION", self.aws_region),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"missing required configuration: {', '.join(missing)}")

        if not self.bucket_name:
            logger.warning("AWS_BUCKET_NAME is empty; storage calls will be rejected by the provider")
        if not self.policy_arn:
            logger.warning("AWS_POLICY_ARN is empty; policy bootstrap will be rejected by the provider")
        return self


def load_settings(dotenv_path: str | None = None) -> Settings:
    """Read a .env file when present, then build and validate settings from the environment."""
    load_dotenv(dotenv_path)
    try:
        settings = Settings()
    except ValueError as exc:
        raise ConfigurationError(f"invalid configuration value: {exc}") from exc
    return settings.validate()
