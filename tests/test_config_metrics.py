"""
Tests for configuration validation, metrics collection and report formatting.
"""
import time

import pytest

import themepalette.config as config_module
from themepalette.config import Config, config
from themepalette.errors import InvalidConfigurationError
from themepalette.schemas import PaletteReport, format_text_report, palette_entries
from themepalette.services.colors.models import PaletteColor, hex_to_rgb, rgb_to_hex
from themepalette.utils.metrics import get_metrics, reset_metrics, timed


class TestConfig:
    """Config validators"""

    def test_results_validation(self):
        assert Config.validate_results(1)
        assert not Config.validate_results(0)

    def test_distance_validation(self):
        assert Config.validate_distance(0)
        assert Config.validate_distance(255)
        assert not Config.validate_distance(-1)
        assert not Config.validate_distance(256)

    def test_workers_validation(self):
        assert Config.validate_workers(1)
        assert not Config.validate_workers(0)

    def test_log_level_validation(self):
        assert Config.validate_log_level("debug")
        assert Config.validate_log_level("WARNING")
        assert not Config.validate_log_level("LOUD")

    def test_block_size_validation(self):
        assert Config.validate_block_size(64, 64)
        assert not Config.validate_block_size(0, 64)

    def test_output_extension_validation(self):
        assert config.validate_output_extension(".PNG")
        assert not config.validate_output_extension(".jpg")


class TestEnvironment:
    """Parsing of THEMEPALETTE_* variables"""

    @pytest.fixture(autouse=True)
    def clean_errors(self, monkeypatch):
        monkeypatch.setattr(config_module, "_env_errors", [])

    def test_integer_values_are_parsed(self, monkeypatch):
        monkeypatch.setenv("THEMEPALETTE_RESULTS", "12")
        assert config_module._env_int("THEMEPALETTE_RESULTS", 8) == 12
        Config.check_environment()

    def test_malformed_integer_falls_back_and_is_reported(self, monkeypatch):
        monkeypatch.setenv("THEMEPALETTE_RENDER_WORKERS", "three")

        assert config_module._env_int("THEMEPALETTE_RENDER_WORKERS", 3) == 3
        with pytest.raises(InvalidConfigurationError, match="THEMEPALETTE_RENDER_WORKERS"):
            Config.check_environment()

    def test_malformed_color_is_reported(self, monkeypatch):
        monkeypatch.setenv("THEMEPALETTE_SWATCH_BACKGROUND", "#12")

        assert config_module._env_color("THEMEPALETTE_SWATCH_BACKGROUND", "#000000") == (0, 0, 0)
        with pytest.raises(InvalidConfigurationError, match="rrggbb"):
            Config.check_environment()

    def test_unknown_log_level_is_reported(self, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "LOUD")

        with pytest.raises(InvalidConfigurationError, match="THEMEPALETTE_LOG_LEVEL"):
            Config.check_environment()


class TestMetrics:
    """In-process metrics collector"""

    def test_timed_records_duration(self):
        with timed("stage"):
            time.sleep(0.001)

        stats = get_metrics().get_timing_stats()
        assert stats["stage_duration_ms"]["count"] == 1
        assert stats["stage_duration_ms"]["min"] > 0

    def test_counters_and_reset(self):
        metrics = get_metrics()
        metrics.increment("things")
        metrics.increment("things", 4)
        assert metrics.get_counters()["things"] == 5

        reset_metrics()
        assert get_metrics().get_counters() == {}

    def test_percentiles(self):
        metrics = get_metrics()
        for value in [10.0, 20.0, 30.0, 40.0, 50.0]:
            metrics.record_timing("op", value)

        stats = metrics.get_timing_stats()["op_duration_ms"]
        assert stats["p50"] == 30.0
        assert stats["mean"] == 30.0


class TestReportFormatting:
    """Hex conversion and text report"""

    def test_hex_conversion(self):
        assert rgb_to_hex((10, 0, 255)) == "#0a00ff"
        assert hex_to_rgb("#0a00ff") == (10, 0, 255)

    def test_text_report_layout(self):
        entries = palette_entries([PaletteColor((255, 0, 0), 3), PaletteColor((0, 0, 1), 1)], 4)
        report = PaletteReport(
            source="x.png", width=2, height=2, mean_color="#3f0000",
            results=2, distance=16, kmeans_iterations=1,
            most_common=entries, grouped=entries, kmeans=entries,
        )

        text = format_text_report(report)

        assert text.splitlines() == [
            "Mean color: #3f0000",
            "Most common colors",
            " 1: #ff0000",
            " 2: #000001",
            "Grouped most common colors",
            " 1: #ff0000",
            " 2: #000001",
            "K-means colors",
            " 1: #ff0000",
            " 2: #000001",
        ]
        assert entries[0].ratio == 0.75
