"""
Tests for configuration loading: defaults, config.toml and MTILE__* overrides.
"""

import pytest

from mtile.config.settings import Settings, resolve_config_dir
from mtile.core.errors import ConfigError, EnvironmentNotReady
from mtile.tiling.margins import Margins
from mtile.tiling.rect import Rect
from mtile.tiling.zones import ZoneSettings


def write_config(config_dir, text):
    path = config_dir / "mtile" / "config.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def load(config_dir, **env):
    return Settings.load({"CONFIG_DIR": str(config_dir), **env})


class TestConfigDir:
    def test_precedence(self, tmp_path):
        assert resolve_config_dir(
            {"CONFIG_DIR": "/a", "XDG_CONFIG_HOME": "/b", "HOME": "/c"}
        ).as_posix() == "/a"
        assert resolve_config_dir(
            {"XDG_CONFIG_HOME": "/b", "HOME": "/c"}
        ).as_posix() == "/b"
        assert resolve_config_dir({"HOME": "/c"}).as_posix() == "/c/.config"

    def test_missing_directory_is_environment_error(self, tmp_path):
        with pytest.raises(EnvironmentNotReady):
            load(tmp_path / "nope")


class TestDefaults:
    def test_without_config_file(self, config_dir):
        settings = load(config_dir)
        assert settings.zones == ZoneSettings()
        assert settings.margins == Margins()
        assert settings.virtual_displays == ()
        assert settings.skip_malformed_displays
        assert settings.daemon_mode
        assert settings.idle_timeout is None
        assert not settings.dump_stats
        assert settings.config_dir == config_dir


class TestConfigFile:
    def test_values_are_read(self, config_dir):
        write_config(
            config_dir,
            """
split_depth = 2
display_columns = 3
display_rows = 1
edge_proximity_size = 40
disable_document_mode = true
skip_malformed_displays = false
virtual_displays = ["1280x1440+0+0", "1280x1440+1280+0"]

[margins]
top = 32
left = 4
""",
        )
        settings = load(config_dir)

        assert settings.zones == ZoneSettings(
            split_depth=2,
            columns=3,
            rows=1,
            edge_proximity=40,
            corner_proximity=40,
            document_mode=False,
        )
        assert settings.margins == Margins(left=4, top=32)
        assert settings.virtual_displays == (
            Rect(0, 0, 1280, 1440),
            Rect(1280, 0, 1280, 1440),
        )
        assert not settings.skip_malformed_displays

    def test_unknown_keys_are_reported(self, config_dir, caplog):
        write_config(config_dir, "colour = 'blue'\n")
        load(config_dir)
        assert "colour" in caplog.text

    def test_invalid_toml(self, config_dir):
        write_config(config_dir, "split_depth = \n")
        with pytest.raises(ConfigError):
            load(config_dir)

    def test_invalid_virtual_display(self, config_dir):
        write_config(config_dir, "virtual_displays = ['half']\n")
        with pytest.raises(ConfigError):
            load(config_dir)

    def test_wrong_type(self, config_dir):
        write_config(config_dir, "display_columns = 'three'\n")
        with pytest.raises(ConfigError):
            load(config_dir)

    def test_config_error_is_an_environment_error(self, config_dir):
        write_config(config_dir, "display_rows = 0\n")
        with pytest.raises(EnvironmentNotReady):
            load(config_dir)


class TestEnvironment:
    def test_env_overrides_file(self, config_dir):
        write_config(config_dir, "split_depth = 2\n[margins]\ntop = 32\n")
        settings = load(
            config_dir,
            MTILE__SPLIT_DEPTH="0",
            MTILE__MARGIN_TOP="10",
            MTILE__MARGIN_BOTTOM="5",
        )
        assert settings.zones.split_depth == 0
        assert settings.margins == Margins(top=10, bottom=5)

    def test_corner_follows_edge_unless_set(self, config_dir):
        settings = load(config_dir, MTILE__EDGE_PROXIMITY_SIZE="50")
        assert settings.zones.corner_proximity == 50

        settings = load(
            config_dir,
            MTILE__EDGE_PROXIMITY_SIZE="50",
            MTILE__CORNER_PROXIMITY_SIZE="10",
        )
        assert settings.zones.corner_proximity == 10

    def test_flags(self, config_dir):
        settings = load(
            config_dir,
            MTILE__DISABLE_DOCUMENT_MODE="1",
            MTILE__DISABLE_DAEMON_MODE="1",
            MTILE__IDLE_TIMEOUT="2.5",
        )
        assert not settings.zones.document_mode
        assert not settings.daemon_mode
        assert settings.idle_timeout == 2.5

    def test_empty_flag_is_off(self, config_dir):
        settings = load(config_dir, MTILE__DISABLE_DAEMON_MODE="")
        assert settings.daemon_mode

    def test_verbose_implies_dump_stats(self, config_dir):
        settings = load(config_dir, MTILE__VERBOSE="1")
        assert settings.verbose
        assert settings.dump_stats

    @pytest.mark.parametrize(
        "name,value",
        [
            ("MTILE__DISPLAY_COLUMNS", "two"),
            ("MTILE__SPLIT_DEPTH", "-1"),
            ("MTILE__MARGIN_LEFT", "-3"),
            ("MTILE__IDLE_TIMEOUT", "soon"),
            ("MTILE__IDLE_TIMEOUT", "0"),
        ],
    )
    def test_invalid_values(self, config_dir, name, value):
        with pytest.raises(ConfigError):
            load(config_dir, **{name: value})
