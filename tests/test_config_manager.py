"""Tests for config_manager module."""

import json
import os
import tempfile

import pytest

from pagedeck.config import DEFAULT_API_BASE_URL
from pagedeck.constants import DEFAULT_MIN_CELL_WIDTH_PX, DEFAULT_THUMBNAIL_WORKERS
from pagedeck.utils.config_manager import ConfigManager
from pagedeck.utils.exceptions import ConfigurationError


class TestConfigManager:
    def _make_manager(self, tmp_dir, initial=None):
        path = os.path.join(tmp_dir, "config.json")
        if initial is not None:
            with open(path, "w") as f:
                json.dump(initial, f)
        return ConfigManager(config_path=path)

    def test_get_default_value(self):
        with tempfile.TemporaryDirectory() as d:
            cm = self._make_manager(d)
            assert cm.get("nonexistent.key", "fallback") == "fallback"

    def test_defaults_present(self):
        with tempfile.TemporaryDirectory() as d:
            cm = self._make_manager(d)
            assert cm.get("viewport.min_cell_width") == DEFAULT_MIN_CELL_WIDTH_PX
            assert cm.get("api.base_url") == DEFAULT_API_BASE_URL
            assert cm.get("thumbnails.workers") == DEFAULT_THUMBNAIL_WORKERS
            assert cm.get("api.auth_token") is None
            assert isinstance(cm.get("window.width"), int)

    def test_missing_file_is_created(self):
        with tempfile.TemporaryDirectory() as d:
            self._make_manager(d)
            assert os.path.exists(os.path.join(d, "config.json"))

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "config.json")
            cm = ConfigManager(config_path=path)
            cm.set("api.base_url", "http://pdf.example/api/pdf")
            cm2 = ConfigManager(config_path=path)
            assert cm2.get("api.base_url") == "http://pdf.example/api/pdf"

    def test_nested_key_path(self):
        with tempfile.TemporaryDirectory() as d:
            cm = self._make_manager(d)
            cm.set("a.b.c", 42, save_immediately=False)
            assert cm.get("a.b.c") == 42

    def test_old_version_merges_defaults(self):
        with tempfile.TemporaryDirectory() as d:
            cm = self._make_manager(d, initial={"viewport": {"max_columns": 3}})
            assert cm.get("viewport.max_columns") == 3
            assert cm.get("viewport.min_cell_width") == DEFAULT_MIN_CELL_WIDTH_PX
            assert cm.get("version") == 1

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "config.json")
            with open(path, "w") as f:
                f.write("{not json")
            cm = ConfigManager(config_path=path)
            assert cm.get("api.base_url") == DEFAULT_API_BASE_URL


class TestGetInt:
    def test_returns_stored_value(self):
        with tempfile.TemporaryDirectory() as d:
            cm = ConfigManager(config_path=os.path.join(d, "c.json"))
            cm.set("viewport.cell_gap", 8, save_immediately=False)
            assert cm.get_int("viewport.cell_gap", 16) == 8

    def test_default_when_missing(self):
        with tempfile.TemporaryDirectory() as d:
            cm = ConfigManager(config_path=os.path.join(d, "c.json"))
            assert cm.get_int("viewport.unknown", 7) == 7

    @pytest.mark.parametrize("value", ["12", 1.5, True, None])
    def test_rejects_non_integers(self, value):
        with tempfile.TemporaryDirectory() as d:
            cm = ConfigManager(config_path=os.path.join(d, "c.json"))
            cm.set("viewport.max_columns", value, save_immediately=False)
            with pytest.raises(ConfigurationError, match="viewport.max_columns"):
                cm.get_int("viewport.max_columns", 5)

    def test_rejects_below_minimum(self):
        with tempfile.TemporaryDirectory() as d:
            cm = ConfigManager(config_path=os.path.join(d, "c.json"))
            cm.set("thumbnails.workers", 0, save_immediately=False)
            with pytest.raises(ConfigurationError, match=">= 1"):
                cm.get_int("thumbnails.workers", 4, 1)
