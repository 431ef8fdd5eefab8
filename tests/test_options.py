"""Tests for options and option files."""

import json

import pytest

from embedbook import ConflictingTimerMode
from embedbook import PageJumpOptions
from embedbook import SessionOptions
from embedbook import configuration_files


class TestSessionOptions:
    """Tests for SessionOptions."""

    def test_defaults(self):
        options = SessionOptions()
        assert options.use_pages is True
        assert options.page_format == "%p/%m"
        assert options.default_reaction_order == ("first", "back", "stop", "next", "last")
        assert isinstance(options.page_jump, PageJumpOptions)

    def test_camel_case_keys(self):
        options = SessionOptions.from_mapping(
            {
                "usePages": False,
                "showPageNumber": False,
                "pageFormat": "%p of %m",
                "time": 5000,
                "timePerPage": 1000,
                "defaultReactionOrder": ["back", "next"],
            }
        )
        assert options.use_pages is False
        assert options.show_page_number is False
        assert options.page_format == "%p of %m"
        assert options.time == 5000
        assert options.time_per_page == 1000
        assert options.default_reaction_order == ("back", "next")

    def test_snake_case_keys(self):
        assert SessionOptions.from_mapping({"reset_on_page": True}).reset_on_page is True

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            SessionOptions.from_mapping({"pageSize": 10})

    def test_conflicting_timer_modes(self):
        with pytest.raises(ConflictingTimerMode):
            SessionOptions(time_per_page=1000, reset_on_page=True)

    def test_unknown_reaction(self):
        with pytest.raises(ValueError):
            SessionOptions(default_reaction_order=("first", "middle"))

    def test_non_positive_time(self):
        with pytest.raises(ValueError):
            SessionOptions(time=0)

    def test_nested_page_jump(self):
        options = SessionOptions.from_mapping({"pageJump": {"cancelKeyword": "stop", "time": 5000}})
        assert options.page_jump.cancel_keyword == "stop"
        assert options.page_jump.time == 5000


class TestConfigFiles:
    """Tests for reading option files."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "navigator.yaml"
        path.write_text("usePages: true\ntime: 30000\nresetOnPage: true\n")
        options = configuration_files.load_options(path)
        assert options.time == 30000
        assert options.reset_on_page is True

    def test_guesses_extension(self, tmp_path):
        (tmp_path / "navigator.json").write_text(json.dumps({"pageFormat": "[%p]"}))
        options = configuration_files.load_options(tmp_path / "navigator")
        assert options.page_format == "[%p]"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert configuration_files.load_options(path) == SessionOptions()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            configuration_files.load_options(tmp_path / "nope")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "navigator.ini"
        path.write_text("[x]")
        with pytest.raises(NotImplementedError):
            configuration_files.ConfigFile(path)

    def test_conflict_in_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("timePerPage: 1000\nresetOnPage: true\n")
        with pytest.raises(ConflictingTimerMode):
            configuration_files.load_options(path)

    def test_caching(self, tmp_path):
        path = tmp_path / "navigator.json"
        path.write_text(json.dumps({"time": 1000}))
        config = configuration_files.ConfigFile(path)
        assert config.sync_get() == {"time": 1000}
        path.write_text(json.dumps({"time": 2000}))
        assert config.is_cached
        assert config.sync_get() == {"time": 1000}
        config.invalidate()
        assert config.sync_get() == {"time": 2000}

    def test_from_config_dir(self, tmp_path, monkeypatch):
        (tmp_path / "help.yaml").write_text("time: 12000\n")
        monkeypatch.setattr(configuration_files, "CONFIG_DIRECTORY", str(tmp_path))
        assert configuration_files.get_from_config_dir("help").time == 12000

    @pytest.mark.asyncio
    async def test_async_load(self, tmp_path):
        path = tmp_path / "navigator.yml"
        path.write_text("pageJump:\n  success: done %n\n")
        options = await configuration_files.async_load_options(path)
        assert options.page_jump.success == "done %n"
