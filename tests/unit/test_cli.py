"""Unit tests for client CLI parsing and bootstrap helpers."""

from __future__ import annotations

import io
from argparse import Namespace

import pytest

from rvdrive.client.bootstrap import (
    FrameDirectoryWriter,
    backendUrlWithConfig_require,
    configWithSettings_load,
    eventScript_load,
)
from rvdrive.client.client_cli import arguments_parse, displaySize_parse, logLevelOverride_get
from rvdrive.common.config import BACKEND_URL_ENV, ConfigLoader
from rvdrive.common.settings import settings
from rvdrive.common.types import EventType, ViewportFrame


class TestLogLevelOverride:
    """Tests for CLI log-level precedence."""

    def test_warning_overrides_debug(self) -> None:
        """
        More restrictive levels should take precedence.

        Returns:
            None.
        """
        args = Namespace(debug=True, info=False, warning=True, error=False)
        assert logLevelOverride_get(args) == "WARNING"

    def test_no_flags(self) -> None:
        """
        Without flags the config level applies.

        Returns:
            None.
        """
        args = Namespace(debug=False, info=False, warning=False, error=False)
        assert logLevelOverride_get(args) is None


class TestArgumentsParse:
    """Tests for argument parsing."""

    def test_options(self) -> None:
        """
        Options land on their namespace attributes.

        Returns:
            None.
        """
        args = arguments_parse(
            ["--backend-url", "http://h/api", "--display-size", "640x360", "--events", "-"]
        )
        assert args.backend_url == "http://h/api"
        assert args.display_size == "640x360"
        assert args.events == "-"
        assert args.duration is None


class TestDisplaySizeParse:
    """Tests for `WIDTHxHEIGHT` parsing."""

    def test_valid(self) -> None:
        """
        Width and height are parsed as integers.

        Returns:
            None.
        """
        assert displaySize_parse("640x360") == (640, 360)
        assert displaySize_parse("1280X720") == (1280, 720)

    @pytest.mark.parametrize("value", ["640", "axb", "0x360", "640x-1"])
    def test_invalid(self, value: str) -> None:
        """
        Malformed or non-positive sizes are rejected.

        Returns:
            None.
        """
        with pytest.raises(ValueError):
            displaySize_parse(value)


class TestBootstrap:
    """Tests for config and script bootstrap."""

    def args_make(self, config_path, **overrides) -> Namespace:
        values = {
            "config": str(config_path),
            "backend_url": None,
            "display_size": None,
            "poll_interval_ms": None,
        }
        values.update(overrides)
        return Namespace(**values)

    def test_config_loaded_into_settings(self, tmp_path, monkeypatch, reset_settings) -> None:
        """
        Loaded config is installed in the settings singleton.

        Returns:
            None.
        """
        monkeypatch.delenv(BACKEND_URL_ENV, raising=False)
        config_file = tmp_path / "config.yml"
        config_file.write_text('backend:\n  url: "http://file.example/api"\n')
        config = configWithSettings_load(
            self.args_make(config_file, display_size="800x450"), displaySize_parse
        )
        assert settings.config is config
        assert config.viewport.display_width == 800
        assert config.viewport.display_height == 450

    def test_missing_config_exits(self, tmp_path, capsys) -> None:
        """
        A missing config file exits with status 1.

        Returns:
            None.
        """
        with pytest.raises(SystemExit) as exc_info:
            configWithSettings_load(self.args_make(tmp_path / "absent.yml"), displaySize_parse)
        assert exc_info.value.code == 1
        assert "Create a config.yml" in capsys.readouterr().err

    def test_bad_display_size_exits(self, tmp_path) -> None:
        """
        An invalid --display-size exits with status 1.

        Returns:
            None.
        """
        config_file = tmp_path / "config.yml"
        config_file.write_text("backend: {}\n")
        with pytest.raises(SystemExit):
            configWithSettings_load(
                self.args_make(config_file, display_size="wide"), displaySize_parse
            )

    def test_malformed_yaml_exits(self, tmp_path, capsys) -> None:
        """
        A config file that is not valid YAML exits with status 1.

        Returns:
            None.
        """
        config_file = tmp_path / "config.yml"
        config_file.write_text("backend:\n  url: [unclosed\n")
        with pytest.raises(SystemExit) as exc_info:
            configWithSettings_load(self.args_make(config_file), displaySize_parse)
        assert exc_info.value.code == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_relative_backend_url_exits(self) -> None:
        """
        A relative backend URL stops startup.

        Returns:
            None.
        """
        config = ConfigLoader.config_parse({"backend": {"url": "/api"}})
        with pytest.raises(SystemExit):
            backendUrlWithConfig_require(config)

    def test_event_script_from_stdin(self) -> None:
        """
        `-` reads the script from standard input.

        Returns:
            None.
        """
        stdin = io.StringIO('{"type": "enter"}\n{"type": "click", "x": 1, "y": 2, "delay_ms": 150}\n')
        events = eventScript_load("-", stdin=stdin)
        assert [e.event.event_type for e in events] == [EventType.POINTER_ENTER, EventType.CLICK]
        assert events[1].delay_ms == 150

    def test_bad_event_script_exits(self, tmp_path) -> None:
        """
        A malformed script exits before any session starts.

        Returns:
            None.
        """
        script = tmp_path / "events.jsonl"
        script.write_text('{"type": "nope"}\n')
        with pytest.raises(SystemExit):
            eventScript_load(str(script))


class TestFrameDirectoryWriter:
    """Tests for frame output."""

    def test_numbered_and_latest(self, tmp_path) -> None:
        """
        Every frame gets a numbered file and refreshes `latest`.

        Returns:
            None.
        """
        writer = FrameDirectoryWriter(tmp_path / "frames")
        writer.frame_write(ViewportFrame(image=b"\x89PNG1", session_id="s"))
        path = writer.frame_write(ViewportFrame(image=b"\x89PNG2", session_id="s"))
        assert path.name == "frame_000002.png"
        assert (tmp_path / "frames" / "latest.png").read_bytes() == b"\x89PNG2"
        assert (tmp_path / "frames" / "frame_000001.png").read_bytes() == b"\x89PNG1"
