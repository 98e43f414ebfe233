"""Tests for JSON-backed application settings."""

import json
import os

import pytest

from pdf_joiner.core import settings as settings_module
from pdf_joiner.core.settings import AppSettings, SettingsManager


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.auto_install_ghostscript
        assert settings.max_redirects == 10
        assert settings.download_timeout == 60.0
        assert settings.install_verify_timeout == 10.0
        assert settings.pdfa_level == 2

    def test_from_dict_ignores_unknown_keys(self):
        settings = AppSettings.from_dict({"pdfa_level": 3, "no_such_setting": True})
        assert settings.pdfa_level == 3

    def test_round_trip_through_dict(self):
        settings = AppSettings(ghostscript_path="/opt/gs", thumbnail_resolution=96)
        assert AppSettings.from_dict(settings.to_dict()) == settings

    def test_install_dir_default(self, monkeypatch):
        monkeypatch.setenv("PROGRAMFILES", "C:\\Program Files")
        assert AppSettings().install_dir.endswith("gs10.00.0")

    def test_install_dir_override(self):
        assert AppSettings(ghostscript_install_dir="D:\\gs").install_dir == "D:\\gs"


class TestSettingsManager:
    """Tests for SettingsManager."""

    def test_missing_file_gives_defaults(self, tmp_path):
        manager = SettingsManager(tmp_path / "settings.json")
        assert manager.settings == AppSettings()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        manager = SettingsManager(path)
        manager.settings.last_save_directory = "/home/docs"
        manager.settings.auto_install_ghostscript = False

        assert manager.save()

        reloaded = SettingsManager(path).settings
        assert reloaded.last_save_directory == "/home/docs"
        assert not reloaded.auto_install_ghostscript

    def test_invalid_json_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsManager(path).settings == AppSettings()

    def test_non_object_json_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
        assert SettingsManager(path).settings == AppSettings()

    def test_reset_to_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        manager = SettingsManager(path)
        manager.settings.pdfa_level = 1
        manager.save()

        manager.reset_to_defaults()

        assert SettingsManager(path).settings.pdfa_level == 2

    def test_decline_flag_not_persisted(self):
        assert "declined" not in AppSettings().to_dict()
        assert not any("decline" in key for key in AppSettings().to_dict())

    @pytest.mark.skipif(os.name == "nt", reason="XDG_CONFIG_HOME is only used off Windows")
    def test_app_data_dir_from_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        app_dir = settings_module.get_app_data_dir()
        assert app_dir == tmp_path / "PDFJoiner"
        assert app_dir.is_dir()
