"""Tests for the TOML settings layer."""
from __future__ import annotations

import logging
from pathlib import Path

from settings import AppSettings, SettingsManager, get_settings, set_settings


class TestSettingsManager:
    def test_defaults_without_file(self, tmp_path):
        mgr = SettingsManager(settings_dir=tmp_path)
        s = mgr.settings
        assert s.canvas.grid.spacing == 100.0
        assert s.canvas.grid.major_radius == 8.0
        assert s.canvas.grid.minor_radius == 6.0
        assert s.canvas.grid.max_zoom == 5.0
        assert s.canvas.shapes.accent_color == "#4F6BED"
        assert s.canvas.handles.size == 8.0
        assert s.canvas.zoom.factor == 1.0
        assert s.storage.elements_key == "diagram.elements"
        assert s.logging.level == "INFO"
        assert not mgr.get_settings_path().exists()

    def test_ensure_file_complete_writes_all_sections(self, tmp_path):
        mgr = SettingsManager(settings_dir=tmp_path)
        mgr.ensure_file_complete()
        text = mgr.get_settings_path().read_text(encoding="utf-8")
        for section in ("[canvas.grid]", "[canvas.shapes]", "[canvas.handles]",
                        "[canvas.selection]", "[canvas.zoom]", "[storage]", "[logging]"):
            assert section in text

    def test_save_and_reload(self, tmp_path):
        mgr = SettingsManager(settings_dir=tmp_path)
        mgr.settings.canvas.zoom.factor = 2.0
        mgr.settings.canvas.shapes.default_corner_radius = 4.0
        mgr.settings.logging.trace = True
        mgr.save()

        s = SettingsManager(settings_dir=tmp_path).settings
        assert s.canvas.zoom.factor == 2.0
        assert s.canvas.shapes.default_corner_radius == 4.0
        assert s.logging.trace is True

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        (tmp_path / "settings.toml").write_text('[canvas.grid]\nspacing = 50.0\n', encoding="utf-8")
        s = SettingsManager(settings_dir=tmp_path).settings
        assert s.canvas.grid.spacing == 50.0
        assert s.canvas.grid.color == "#C8CDD5"
        assert s.canvas.background_color == "#FFFFFF"

    def test_non_positive_spacing_and_zoom_use_defaults(self, tmp_path, caplog):
        (tmp_path / "settings.toml").write_text(
            "[canvas.grid]\nspacing = 0.0\n\n[canvas.zoom]\nfactor = -2.0\n", encoding="utf-8"
        )
        with caplog.at_level(logging.WARNING, logger="settings"):
            s = SettingsManager(settings_dir=tmp_path).settings
        assert s.canvas.grid.spacing == 100.0
        assert s.canvas.zoom.factor == 1.0
        assert "canvas.grid.spacing" in caplog.text
        assert "canvas.zoom.factor" in caplog.text

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        (tmp_path / "settings.toml").write_text("[canvas\nnot toml", encoding="utf-8")
        mgr = SettingsManager(settings_dir=tmp_path)
        assert mgr.settings == AppSettings()

    def test_to_toml(self, tmp_path):
        assert 'elements_key = "diagram.elements"' in SettingsManager(settings_dir=tmp_path).to_toml()

    def test_data_dir_override(self, tmp_path):
        mgr = SettingsManager(settings_dir=tmp_path)
        mgr.settings.storage.data_dir = str(tmp_path / "store")
        assert mgr.get_data_dir() == Path(tmp_path / "store")

    def test_data_dir_default_is_platform_dir(self, tmp_path):
        mgr = SettingsManager(settings_dir=tmp_path)
        assert mgr.get_data_dir().name == "diagramcanvas"


def test_settings_singleton(tmp_path):
    mgr = SettingsManager(settings_dir=tmp_path)
    set_settings(mgr)
    try:
        assert get_settings() is mgr
    finally:
        set_settings(None)
