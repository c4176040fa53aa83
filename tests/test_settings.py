"""Tests for settings loading and logging setup."""

from pathlib import Path

from ppcalc.settings import Settings
from ppcalc.utils.logger import logger, setup_logging


class TestSettings:
    def test_defaults(self, tmp_path):
        settings = Settings(storage_path=str(tmp_path))

        assert settings.beatmap_download_url == "https://osu.ppy.sh/osu/"
        assert settings.beatmap_cache_days == 7
        assert settings.beatmap_min_size == 30
        assert settings.fetch_attempts == 3
        assert settings.calculation_timeout == 30.0
        assert settings.memoize_max_entries is None
        assert settings.beatmap_cache_ttl_seconds == 7 * 24 * 3600

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PPCALC_FETCH_ATTEMPTS", "5")
        monkeypatch.setenv("PPCALC_MEMOIZE_ARTIFACTS", "false")

        settings = Settings()

        assert settings.fetch_attempts == 5
        assert settings.memoize_artifacts is False

    def test_toml_file(self, tmp_path, monkeypatch):
        (tmp_path / "settings.toml").write_text('beatmap_cache_days = 3\nlog_level = "DEBUG"\n')
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.beatmap_cache_days == 3
        assert settings.log_level == "DEBUG"

    def test_directories(self, tmp_path):
        settings = Settings(storage_path=str(tmp_path))
        assert settings.get_beatmap_cache_dir() == tmp_path / "beatmaps"
        assert settings.get_log_dir() == tmp_path / "logs"

        custom = Settings(storage_path=str(tmp_path), beatmap_cache_dir="/srv/osu")
        assert custom.get_beatmap_cache_dir() == Path("/srv/osu")


class TestLogging:
    def test_file_sink(self, tmp_path):
        log_file = tmp_path / "logs" / "ppcalc.log"
        setup_logging(level="DEBUG", log_to_file=True, log_file=log_file)
        try:
            logger.info("Calculated total pp: 123.4")
            assert "Calculated total pp: 123.4" in log_file.read_text()
        finally:
            setup_logging()

    def test_request_id_defaults_outside_calculations(self):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        try:
            logger.info("outside")
            with logger.contextualize(request_id="abcd1234"):
                logger.info("inside")
        finally:
            logger.remove(sink_id)

        assert [r["extra"]["request_id"] for r in records] == ["-", "abcd1234"]
