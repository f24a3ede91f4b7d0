"""Unit tests for search definition loading, settings and logging."""
import json
import logging
import os
from datetime import date
from pathlib import Path

import pytest

from fieldfilter import settings
from fieldfilter.errors import ConfigurationError, UnknownSearch
from fieldfilter.log import configure_logging, log
from fieldfilter.query import FilterFragment
from fieldfilter.registry import Registry, load_registry

EXAMPLE_FILE = Path(__file__).resolve().parents[1] / "config" / "searches.yaml"

PEOPLE_YAML = """
searches:
  people:
    fields:
      - first_name
      - last_name: begins_with
      - email: {sql: people.email, pattern: not_null}
  flags:
    fields:
      active: true
"""


@pytest.fixture
def people_file(tmp_path):
    path = tmp_path / "searches.yaml"
    path.write_text(PEOPLE_YAML, encoding="utf-8")
    return path


class TestRegistryLoad:
    def test_loads_yaml(self, people_file):
        registry = Registry().load(people_file)
        assert registry.names() == ["people", "flags"]
        assert registry.get("people").fields.names() == ["first_name", "last_name", "email"]

    def test_yaml_booleans_are_true_false_patterns(self, people_file):
        registry = Registry().load(people_file)
        assert registry.to_sql("flags", "x") == FilterFragment("active = ?", [True])

    def test_loads_json(self, tmp_path):
        path = tmp_path / "searches.json"
        path.write_text(json.dumps({"searches": {"s": {"fields": {"code": "ends_with"}}}}))
        registry = Registry().load(path)
        assert registry.to_sql("s", "42") == FilterFragment("code LIKE ?", ["%42"])

    def test_field_search_through_registry(self, people_file):
        registry = Registry().load(people_file)
        result = registry.to_sql("people", {"last_name": {"value": "Sm"}, "email": {"value": "y"}}, "field")
        assert result == FilterFragment("last_name LIKE ? AND people.email IS NOT NULL", ["Sm%"])

    def test_example_definitions_are_valid(self):
        registry = Registry().load(EXAMPLE_FILE)
        result = registry.to_sql("open_orders", {"placed_on": {"value": "2024-03-01"}}, "field")
        assert result == FilterFragment("orders.placed_at >= ?", [date(2024, 3, 1)])

    def test_logs_what_was_loaded(self, people_file, caplog):
        caplog.set_level(logging.INFO, logger="fieldfilter")
        Registry().load(people_file)
        assert "loaded 2 searches" in caplog.text


class TestRegistryErrors:
    def test_unknown_search(self, people_file):
        registry = Registry().load(people_file)
        with pytest.raises(UnknownSearch) as exc:
            registry.get("orders")
        assert isinstance(exc.value, KeyError)
        assert exc.value.search_name == "orders"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Registry().load(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "document",
        [
            {},
            {"searches": {"s": {}}},
            {"searches": {"s": {"fields": "email"}}},
            {"searches": {"s": {"fields": {"email": "sounds_like"}}}},
            {"searches": {"s": {"fields": [{"a": "equals", "b": "equals"}]}}},
            {"searches": {"s": {"fields": {"email": {"column": "email"}}}}},
            {"searches": {"s": {"fields": ["email"], "joins": ["x"]}}},
        ],
    )
    def test_invalid_definitions(self, document):
        with pytest.raises(ConfigurationError):
            Registry().load_definitions(document)

    def test_failed_reload_keeps_previous_searches(self, people_file):
        registry = Registry().load(people_file)
        with pytest.raises(ConfigurationError):
            registry.load_definitions({"searches": {"s": {"fields": {"a": "nope"}}}})
        assert registry.names() == ["people", "flags"]

    @pytest.mark.parametrize(
        "filename, text",
        [
            ("searches.yaml", "searches: [unclosed\n"),
            ("searches.yml", "searches:\n  people:\n    fields: {a: b\n"),
            ("searches.json", '{"searches": {'),
        ],
    )
    def test_unparseable_file(self, tmp_path, filename, text):
        path = tmp_path / filename
        path.write_text(text, encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc:
            Registry().load(path)
        assert exc.value.entry == str(path)


class TestSettings:
    def test_searches_file_from_environment(self, monkeypatch, people_file):
        monkeypatch.setenv("SEARCHES_FILE", str(people_file))
        monkeypatch.delenv("SEARCH_TIME_ZONE", raising=False)
        registry = load_registry()
        assert registry.names() == ["people", "flags"]
        assert registry.time_zone is None

    def test_default_searches_file(self, monkeypatch):
        monkeypatch.delenv("SEARCHES_FILE", raising=False)
        assert settings.searches_path() == Path("config/searches.yaml")

    def test_blank_time_zone(self, monkeypatch):
        monkeypatch.setenv("SEARCH_TIME_ZONE", " ")
        assert settings.search_time_zone() is None

    def test_unknown_time_zone(self, monkeypatch):
        monkeypatch.setenv("SEARCH_TIME_ZONE", "Nowhere/Special")
        with pytest.raises(ConfigurationError):
            settings.search_time_zone()

    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("FIELDFILTER_LOG_LEVEL", "DEBUG")
        assert settings.log_level() == "DEBUG"

    def test_load_registry_reads_dotenv(self, monkeypatch, tmp_path, people_file):
        # set first so monkeypatch restores the variable's original state
        monkeypatch.setenv("SEARCHES_FILE", "unused")
        monkeypatch.delenv("SEARCHES_FILE")
        monkeypatch.delenv("SEARCH_TIME_ZONE", raising=False)
        (tmp_path / ".env").write_text(f"SEARCHES_FILE={people_file}\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_registry().names() == ["people", "flags"]

    def test_importing_settings_leaves_environment_alone(self, monkeypatch, tmp_path):
        import importlib

        monkeypatch.setenv("FIELDFILTER_LOG_LEVEL", "unused")
        monkeypatch.delenv("FIELDFILTER_LOG_LEVEL")
        (tmp_path / ".env").write_text("FIELDFILTER_LOG_LEVEL=DEBUG\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        importlib.reload(settings)
        assert "FIELDFILTER_LOG_LEVEL" not in os.environ


class TestLogging:
    @pytest.fixture(autouse=True)
    def _restore_logger(self):
        handlers, level, propagate = list(log.handlers), log.level, log.propagate
        yield
        log.handlers[:] = handlers
        log.setLevel(level)
        log.propagate = propagate

    def test_abbreviated_levels(self, capsys):
        configure_logging(level="debug")
        logging.getLogger("fieldfilter.registry").warning("careful")
        err = capsys.readouterr().err
        assert "[WARN] careful" in err

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging(level="chatty").level == logging.INFO

    def test_level_defaults_to_environment(self, monkeypatch):
        monkeypatch.setenv("FIELDFILTER_LOG_LEVEL", "DEBUG")
        assert configure_logging().level == logging.DEBUG

    def test_explicit_level_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("FIELDFILTER_LOG_LEVEL", "DEBUG")
        assert configure_logging(level="warning").level == logging.WARNING
