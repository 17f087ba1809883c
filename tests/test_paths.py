"""Tests for path management."""

from pathlib import Path

from recollect.config.paths import (
    ENV_VAR,
    get_config_path,
    get_db_path,
    get_recollect_home,
)


class TestGetRecollectHome:
    """Tests for get_recollect_home()."""

    def test_default_is_home_dot_recollect(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR, raising=False)
        get_recollect_home.cache_clear()

        assert get_recollect_home() == Path.home() / ".recollect"
        get_recollect_home.cache_clear()

    def test_respects_env_var(self, monkeypatch, tmp_path):
        custom_path = tmp_path / "custom-recollect"
        monkeypatch.setenv(ENV_VAR, str(custom_path))
        get_recollect_home.cache_clear()

        assert get_recollect_home() == custom_path.resolve()
        get_recollect_home.cache_clear()


class TestDerivedPaths:
    """Tests for paths under the home directory."""

    def test_paths_under_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv(ENV_VAR, str(tmp_path))
        get_recollect_home.cache_clear()
        home = tmp_path.resolve()

        assert get_config_path() == home / "config.toml"
        assert get_db_path() == home / "memory"
        get_recollect_home.cache_clear()
