from __future__ import annotations

from unittest.mock import MagicMock

from storage_proxy import server
from storage_proxy.application.bootstrap_use_case import BootstrapError, BootstrapOutcome, BootstrapResult
from storage_proxy.config import ConfigurationError, Settings
from storage_proxy.infrastructure.clients import ClientBundle


def _settings() -> Settings:
    return Settings(
        aws_access_key='key',
        aws_secret_key='secret',
        aws_region='eu-west-2',
        bucket_name='data-bucket',
        policy_arn='arn:aws:iam::123:policy/X',
        http_host='127.0.0.1',
        http_port=3000,
        http_timeout_seconds=15,
        log_level='INFO',
    )


def _bundle(settings: Settings) -> ClientBundle:
    return ClientBundle(s3=MagicMock(), iam=MagicMock(), presigner=MagicMock())


def test_main_exits_on_configuration_error(monkeypatch) -> None:
    def fail() -> Settings:
        raise ConfigurationError('missing required configuration: AWS_ACCESS_KEY')

    monkeypatch.setattr(server, 'load_settings', fail)
    monkeypatch.setattr(server.uvicorn, 'run', MagicMock())

    assert server.main() == 1
    server.uvicorn.run.assert_not_called()


def test_main_exits_on_bootstrap_error(monkeypatch) -> None:
    def fail(settings, bundle):
        raise BootstrapError('create_bucket', 'access denied')

    monkeypatch.setattr(server, 'load_settings', _settings)
    monkeypatch.setattr(server, 'build_client_bundle', _bundle)
    monkeypatch.setattr(server, 'run_bootstrap', fail)
    monkeypatch.setattr(server.uvicorn, 'run', MagicMock())

    assert server.main() == 1
    server.uvicorn.run.assert_not_called()


def test_main_serves_after_bootstrap(monkeypatch) -> None:
    run = MagicMock()
    monkeypatch.setattr(server, 'load_settings', _settings)
    monkeypatch.setattr(server, 'build_client_bundle', _bundle)
    monkeypatch.setattr(
        server,
        'run_bootstrap',
        lambda settings, bundle: BootstrapResult(outcome=BootstrapOutcome.EXISTING_BUCKET, bucket='data-bucket'),
    )
    monkeypatch.setattr(server.uvicorn, 'run', run)

    assert server.main() == 0
    _, kwargs = run.call_args
    assert kwargs['host'] == '127.0.0.1'
    assert kwargs['port'] == 3000
    assert kwargs['timeout_keep_alive'] == 15


def test_run_bootstrap_wires_adapters(monkeypatch) -> None:
    calls = []

    class RecordingUseCase:
        def __init__(self, storage, policies) -> None:
            calls.append((type(storage).__name__, type(policies).__name__))

        def execute(self, bucket, region, policy_arn, partition='aws'):
            calls.append((bucket, region, policy_arn, partition))
            return BootstrapResult(outcome=BootstrapOutcome.PROVISIONED, bucket=bucket)

    monkeypatch.setattr(server, 'BootstrapUseCase', RecordingUseCase)
    settings = _settings()
    result = server.run_bootstrap(settings, _bundle(settings))

    assert result.outcome is BootstrapOutcome.PROVISIONED
    assert calls == [
        ('S3ObjectStorage', 'IamPolicyService'),
        ('data-bucket', 'eu-west-2', 'arn:aws:iam::123:policy/X', 'aws'),
    ]
