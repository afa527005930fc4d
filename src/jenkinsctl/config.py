# config.py
"""
Configuration for jenkinsctl.

Settings come from an optional YAML file (default ``~/.jenkinsctl.yml``,
overridable with ``--config`` or ``JENKINSCTL_CONFIG``) and are then
overridden by command-line flags. Example::

    base_uri: https://ci.example.com
    user: alice
    password_command: pass show ci/alice
    jobs: [deploy, nightly]
    views: [team, team/view/backend]
    stoplight: true
    show_stuck: true
"""

from __future__ import annotations

import stat
import subprocess
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml

DEFAULT_CONFIG_FILE = Path("~/.jenkinsctl.yml")
DEFAULT_COOKIE_FILE = Path("~/.jenkinsctl.cookies")
DEFAULT_BASE_URI = "http://localhost:8080"


class ConfigError(Exception):
    """Raised when the configuration file is unusable."""
    pass


@dataclass(frozen=True)
class Config:
    base_uri: str = DEFAULT_BASE_URI
    user: Optional[str] = None
    password: Optional[str] = None
    password_command: Optional[str] = None
    jobs: List[str] = field(default_factory=list)
    views: List[str] = field(default_factory=list)
    stoplight: bool = False
    color: Optional[bool] = None  # None: only when writing to a terminal
    verbose: bool = False
    show_stuck: bool = False
    auto_confirm: bool = False
    history_depth: int = 20
    cookie_file: Path = DEFAULT_COOKIE_FILE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Config:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        values = dict(data)
        for key in ("jobs", "views"):
            if key in values:
                values[key] = _as_list(values[key], key)
        if "cookie_file" in values:
            values["cookie_file"] = Path(values["cookie_file"])
        return cls(**values)

    def override(self, **changes: Any) -> Config:
        """Copy with every non-None change applied (CLI flags win)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def get_password(self, user: str) -> str:
        """
        Password for ``user``: from the file, from ``password_command``,
        or asked for interactively without echo.
        """
        if self.password:
            return self.password
        if self.password_command:
            try:
                out = subprocess.check_output(self.password_command, shell=True, text=True)
            except subprocess.CalledProcessError as e:
                raise ConfigError(f"password_command failed with exit code {e.returncode}") from e
            return out.strip()
        return click.prompt(f"Password for {user}", hide_input=True, err=True)


def _as_list(value: Any, key: str) -> List[str]:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigError(f"{key} must be a list of names")


def check_permissions(path: Path) -> None:
    """Refuse a file holding a password that group or others can access."""
    mode = path.stat().st_mode
    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        raise ConfigError(
            f"{path} contains a password but is accessible by group/others "
            f"(mode {stat.S_IMODE(mode):o}); run: chmod 600 {path}"
        )


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        path: Explicit config file. A missing explicit file is an error;
            a missing default file just yields the defaults.

    Raises:
        ConfigError: If the file cannot be parsed or is insecure
    """
    explicit = path is not None
    path = (path or DEFAULT_CONFIG_FILE).expanduser()
    if path.exists():
        data = _read_yaml(path)
    elif explicit:
        raise ConfigError(f"Configuration file not found: {path}")
    else:
        data = {}

    if data.get("password"):
        check_permissions(path)
    config = Config.from_dict(data)
    return replace(config, cookie_file=config.cookie_file.expanduser())


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")
    return data
