"""Tests for logging setup and the schema management helpers."""

import json
import logging

import pytest
import structlog
from ordering.domain import ordering
from ordering.utils.db import drop_db, setup_db
from ordering.utils.logging import configure_logging, get_log_level

pytestmark = pytest.mark.fast


class TestLogLevel:
    @pytest.mark.parametrize(
        "env, expected",
        [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("unknown", "INFO")],
    )
    def test_level_follows_environment(self, monkeypatch, env, expected):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", env)
        assert get_log_level() == expected

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"


class TestConfigureLogging:
    @pytest.fixture
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield root
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
        structlog.reset_defaults()

    def test_errors_are_written_as_json(self, monkeypatch, tmp_path, restore_root):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        configure_logging(log_dir=tmp_path, environment="production")

        structlog.get_logger("checkout").error("checkout_commit_failed", checkout_id="chk-1")
        structlog.get_logger("checkout").info("payment_intent_created", checkout_id="chk-2")
        for handler in restore_root.handlers:
            handler.flush()

        [error] = (tmp_path / "storefront_error.log").read_text().splitlines()
        assert json.loads(error)["event"] == "checkout_commit_failed"
        assert json.loads(error)["checkout_id"] == "chk-1"
        assert len((tmp_path / "storefront.log").read_text().splitlines()) == 2

    def test_stdlib_records_share_the_format(self, monkeypatch, tmp_path, restore_root):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        configure_logging(log_dir=tmp_path, environment="production")

        logging.getLogger("protean").warning("provider %s slow", "memory")
        for handler in restore_root.handlers:
            handler.flush()

        [line] = (tmp_path / "storefront.log").read_text().splitlines()
        record = json.loads(line)
        assert record["event"] == "provider memory slow"
        assert record["logger"] == "protean"


class TestSchemaHelpers:
    def test_in_memory_provider_needs_no_schema(self):
        assert setup_db(ordering) == []
        assert drop_db(ordering) == []
