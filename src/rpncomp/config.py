## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass, fields, asdict

from .errors import CompFileError
from .formatting import warn


@dataclass(frozen=True)
class Config:
    """Display and conversion settings, read once at start and never changed during evaluation."""
    show_stack_level: bool = True
    monochrome: bool = False
    conversion_constant: float = 1.0
    tip_percentage: float = 0.15
    show_warnings: bool = True
    precision: int | None = None


def default_config_path() -> Path:
    if (env := os.environ.get('COMP_CONFIG')):
        return Path(os.path.expanduser(os.path.expandvars(env)))
    return Path.home() / 'comp.toml'


def _accepts(name: str, value) -> bool:
    match name:
        case 'show_stack_level' | 'monochrome' | 'show_warnings':
            return isinstance(value, bool)
        case 'conversion_constant' | 'tip_percentage':
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        case 'precision':
            return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 17
    return False


def load_config(path: str | Path | None = None) -> Config:
    """Read settings from TOML, falling back to defaults for a missing file, a corrupt file, or invalid keys."""
    path = Path(path) if path is not None else default_config_path()
    if not path.is_file():
        return Config()

    try:
        data = tomllib.loads(path.read_text(encoding='utf-8'))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        warn(f"configuration file `{path}` (ignored) is corrupt or incorrectly constructed: {exc}")
        return Config()
    except OSError as exc:
        warn(f"configuration file `{path}` (ignored) could not be read: {exc.strerror}")
        return Config()

    known, problems = {f.name for f in fields(Config)}, []
    values = {}
    for key, value in data.items():
        if key not in known:
            problems.append(f"unknown key `{key}` in `{path}` ignored")
        elif not _accepts(key, value):
            problems.append(f"invalid value `{value!r}` for `{key}` in `{path}`, using default")
        else:
            values[key] = float(value) if key in ('conversion_constant', 'tip_percentage') else value

    config = Config(**values)
    if config.show_warnings:
        for message in problems:
            warn(message)
    return config


def save_config(config: Config, path: str | Path | None = None) -> Path:
    path = Path(path) if path is not None else default_config_path()
    lines = []
    for key, value in asdict(config).items():
        if value is None: continue
        text = str(value).lower() if isinstance(value, bool) else repr(value)
        lines.append(f"{key} = {text}")
    try:
        path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
    except OSError as exc:
        raise CompFileError(f"Cannot write configuration to `{path}`: {exc.strerror}.", filename=str(path)) from exc
    return path
