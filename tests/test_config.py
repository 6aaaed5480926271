## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from rpncomp.config import Config, load_config, save_config, default_config_path


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.toml")
    assert config == Config()
    assert config.tip_percentage == 0.15 and config.show_stack_level is True


def test_values_are_read(tmp_path):
    path = tmp_path / "comp.toml"
    path.write_text("tip_percentage = 0.2\nconversion_constant = 3\nmonochrome = true\nprecision = 4\n")
    config = load_config(path)
    assert config.tip_percentage == 0.2
    assert config.conversion_constant == 3.0 and isinstance(config.conversion_constant, float)
    assert config.monochrome is True
    assert config.precision == 4


def test_corrupt_file_falls_back_to_defaults(tmp_path, capsys):
    path = tmp_path / "comp.toml"
    path.write_text("tip_percentage = = oops\n")
    assert load_config(path) == Config()
    assert "corrupt" in capsys.readouterr().err


@pytest.mark.parametrize("line", ["show_stack_level = 'yes'", "tip_percentage = true", "precision = -1"])
def test_invalid_value_uses_default_for_that_key(tmp_path, capsys, line):
    path = tmp_path / "comp.toml"
    path.write_text(f"{line}\nconversion_constant = 2.0\n")
    config = load_config(path)
    assert config.conversion_constant == 2.0
    key = line.split(' ')[0]
    assert getattr(config, key) == getattr(Config(), key)
    assert "invalid value" in capsys.readouterr().err


def test_unknown_key_is_reported(tmp_path, capsys):
    path = tmp_path / "comp.toml"
    path.write_text("colour = 'blue'\n")
    assert load_config(path) == Config()
    assert "unknown key `colour`" in capsys.readouterr().err


def test_warnings_can_be_silenced(tmp_path, capsys):
    path = tmp_path / "comp.toml"
    path.write_text("show_warnings = false\ncolour = 'blue'\n")
    load_config(path)
    assert capsys.readouterr().err == ""


def test_save_then_load(tmp_path):
    path = tmp_path / "comp.toml"
    config = Config(show_stack_level=False, monochrome=True, tip_percentage=0.18, precision=3)
    save_config(config, path)
    assert "monochrome = true\n" in path.read_text()
    assert load_config(path) == config


def test_environment_selects_config_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.toml"
    path.write_text("tip_percentage = 0.25\n")
    monkeypatch.setenv('COMP_CONFIG', str(path))
    assert default_config_path() == path
    assert load_config().tip_percentage == 0.25
