from __future__ import annotations

import logging
import sys

import uvicorn

from storage_proxy.application.bootstrap_use_case import BootstrapError, BootstrapResult, BootstrapUseCase
from storage_proxy.config import ConfigurationError, Settings, load_settings
from storage_proxy.infrastructure.clients import ClientBundle, build_client_bundle
from storage_proxy.infrastructure.object_storage import S3ObjectStorage
from storage_proxy.infrastructure.policy_service import IamPolicyService
from storage_proxy.presentation.api import create_app

logger = logging.getLogger("storage_proxy.server")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run_bootstrap(settings: Settings, bundle: ClientBundle) -> BootstrapResult:
    use_case = BootstrapUseCase(S3ObjectStorage(bundle), IamPolicyService(bundle))
    return use_case.execute(
        settings.bucket_name,
        settings.aws_region or "",
        settings.policy_arn,
        partition=settings.aws_partition,
    )


def main() -> int:
    """Boot the service: load config, provision storage, then serve.

    Any boot-time failure is logged and turned into exit status 1 so a
    half-provisioned environment never starts serving traffic.
    """
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging("INFO")
        logger.error("configuration failed: %s", exc)
        return 1

    configure_logging(settings.log_level)
    try:
        bundle = build_client_bundle(settings)
        result = run_bootstrap(settings, bundle)
    except (ConfigurationError, BootstrapError) as exc:
        logger.error("startup aborted: %s", exc)
        return 1
    logger.info("bootstrap finished: %s", result.outcome.value)

    app = create_app(settings, S3ObjectStorage(bundle))
    uvicorn.run(
        app,
        host=settings.http_host,
        port=settings.http_port,
        timeout_keep_alive=settings.http_timeout_seconds,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
