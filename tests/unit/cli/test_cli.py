"""Tests for the bookshelf command line."""

import pytest
from typer.testing import CliRunner

from src.bookshelf.cli import _serve_overrides, app
from src.bookshelf.runtime.config.config_data import ConfigData, KafkaConfig
from src.bookshelf.runtime.context import get_config, with_context

runner = CliRunner()


@pytest.fixture
def served(monkeypatch) -> list[ConfigData]:
    """Configs seen by ``uvicorn.run``; the server itself never starts."""
    seen: list[ConfigData] = []
    monkeypatch.setattr("uvicorn.run", lambda *args, **kwargs: seen.append(get_config()))
    return seen


class TestServeOverrides:
    def test_nothing_passed_overrides_nothing(self):
        overrides = _serve_overrides(None, None, None)
        assert overrides.model_fields_set == set()

    def test_only_passed_options_are_set(self):
        overrides = _serve_overrides("127.0.0.1", None, False)
        assert overrides.model_fields_set == {"app", "kafka"}
        assert overrides.app.model_fields_set == {"host"}
        assert overrides.kafka.model_fields_set == {"consumer_enabled"}


class TestServe:
    @pytest.mark.parametrize("configured", [True, False])
    def test_consumer_setting_is_inherited_without_flag(self, served, configured):
        with with_context(ConfigData(kafka=KafkaConfig(consumer_enabled=configured))):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 0, result.output
        assert served[0].kafka.consumer_enabled is configured

    @pytest.mark.parametrize(("flag", "expected"), [("--consumer", True), ("--no-consumer", False)])
    def test_flag_overrides_configuration(self, served, flag, expected):
        with with_context(ConfigData(kafka=KafkaConfig(consumer_enabled=not expected))):
            result = runner.invoke(app, ["serve", flag])

        assert result.exit_code == 0, result.output
        assert served[0].kafka.consumer_enabled is expected

    def test_host_and_port(self, served):
        result = runner.invoke(app, ["serve", "--host", "127.0.0.1", "--port", "9000"])

        assert result.exit_code == 0, result.output
        assert (served[0].app.host, served[0].app.port) == ("127.0.0.1", 9000)
