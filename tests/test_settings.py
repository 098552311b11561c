"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from drive_search.config.settings import Settings
from drive_search.core.errors import ConfigurationError


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:

    def test_defaults_are_valid(self):
        s = make_settings()

        assert s.chunk_size == 1000
        assert s.chunk_overlap == 200
        assert s.default_threshold == 0.35

    @pytest.mark.parametrize("overrides", [
        {"chunk_size": 0},
        {"chunk_size": 100, "chunk_overlap": 100},
        {"chunk_overlap": -1},
        {"min_threshold": 0.8, "max_threshold": 0.2},
        {"embed_concurrency": 0},
    ])
    def test_invalid_values_fail_at_startup(self, overrides):
        with pytest.raises(ValidationError):
            make_settings(**overrides)

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("DRIVE_SEARCH_DRIVE_ROOT_ID", "folder-42")
        monkeypatch.setenv("DRIVE_SEARCH_TOP_K_DOCS", "3")

        s = make_settings()

        assert s.root_id == "folder-42"
        assert s.top_k_docs == 3

    def test_missing_drive_root_is_configuration_error(self, monkeypatch):
        monkeypatch.delenv("DRIVE_SEARCH_DRIVE_ROOT_ID", raising=False)
        s = make_settings(document_source="drive", drive_root_id="")

        with pytest.raises(ConfigurationError):
            s.require_root_id()

    def test_local_source_uses_docs_path(self):
        s = make_settings(document_source="local", docs_path="/srv/docs")

        assert s.require_root_id() == "/srv/docs"
