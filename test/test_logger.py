"""Tests for logger configuration helpers."""

import logging

import pytest

from serialcheck import constants
from serialcheck.utils.logger import _apply_module_levels, _normalize_module_name


@pytest.fixture
def restore_levels():
    names = ["serialcheck.core.fetcher", "serialcheck.core.query", "serialcheck.report"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestNormalizeModuleName:
    """Test cases for module name normalization."""

    @pytest.mark.parametrize("name,expected", [
        ("fetch", "serialcheck.core.fetcher"),
        ("transport", "serialcheck.core.query"),
        ("core.resolver", "serialcheck.core.resolver"),
        ("report.*", "serialcheck.report"),
        ("serialcheck.cli", "serialcheck.cli"),
        ("dns.query", "dns.query"),
    ])
    def test_names(self, name, expected):
        assert _normalize_module_name(name) == expected


class TestModuleLevels:
    """Test cases for per-module level overrides."""

    def test_explicit_mapping(self, restore_levels):
        _apply_module_levels({"fetcher": "debug", "report": "ERROR"})

        assert logging.getLogger("serialcheck.core.fetcher").level == logging.DEBUG
        assert logging.getLogger("serialcheck.report").level == logging.ERROR

    def test_from_environment(self, restore_levels, monkeypatch):
        monkeypatch.setenv(constants.LOG_LEVELS_ENV, "query=INFO, bogus ,fetcher=WARNING")

        _apply_module_levels(None)

        assert logging.getLogger("serialcheck.core.query").level == logging.INFO
        assert logging.getLogger("serialcheck.core.fetcher").level == logging.WARNING

    def test_invalid_level_ignored(self, restore_levels):
        before = logging.getLogger("serialcheck.core.query").level

        _apply_module_levels({"query": "CHATTY"})

        assert logging.getLogger("serialcheck.core.query").level == before
