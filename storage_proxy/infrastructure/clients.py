from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError

from storage_proxy.config import ConfigurationError, Settings

logger = logging.getLogger("storage_proxy.clients")


@dataclass(frozen=True)
class ClientBundle:
    s3: Any
    iam: Any
    presigner: Any


def build_client_bundle(settings: Settings) -> ClientBundle:
    """Build the provider clients once from static credentials.

    The entry point calls this a single time and hands the bundle to every
    component that talks to the provider. The presigner is a separate S3 client
    so signed URLs can target the public endpoint while uploads use the
    internal one.
    """
    s3_config = Config(signature_version="s3v4", s3={"addressing_style": settings.s3_addressing_style})
    try:
        session = boto3.Session(
            aws_access_key_id=settings.aws_access_key,
            aws_secret_access_key=settings.aws_secret_key,
            region_name=settings.aws_region,
        )
        s3_client = session.client("s3", endpoint_url=settings.s3_endpoint_url, config=s3_config)
        presigner = s3_client
        if settings.s3_public_endpoint_url:
            presigner = session.client("s3", endpoint_url=settings.s3_public_endpoint_url, config=s3_config)
        iam_client = session.client("iam")
    except (BotoCoreError, ValueError) as exc:
        raise ConfigurationError(f"could not initialize AWS clients: {exc}") from exc

    logger.info("AWS clients initialized for region %s", settings.aws_region)
    return ClientBundle(s3=s3_client, iam=iam_client, presigner=presigner)
