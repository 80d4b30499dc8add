from __future__ import annotations

import sys

from storage_proxy.application.bootstrap_use_case import BootstrapError
from storage_proxy.config import ConfigurationError, load_settings
from storage_proxy.infrastructure.clients import build_client_bundle
from storage_proxy.server import configure_logging, run_bootstrap


if __name__ == "__main__":
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        result = run_bootstrap(settings, build_client_bundle(settings))
    except (ConfigurationError, BootstrapError) as exc:
        print(f"bootstrap-failed:{exc}", file=sys.stderr)
        sys.exit(1)
    print(f"bucket-ready:{result.bucket}:{result.outcome.value}")
