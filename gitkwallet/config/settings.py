"""Helper settings loader.

Values are taken from, in order of precedence: command line, environment,
YAML config file, built-in defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

ENV_PREFIX = "GIT_CREDENTIAL_KWALLET_"
DEFAULT_FOLDER = "Git"
DEFAULT_SERVICE = "kwalletd5"
DEFAULT_APP_ID = "git-credential-kwallet"
DEFAULT_TIMEOUT_SECONDS = 30.0
SUPPORTED_SERVICES = {"kwalletd5", "kwalletd6"}
_CONFIG_KEYS = {"wallet", "folder", "service", "app_id", "timeout_seconds", "debug"}
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WalletSettings:
    wallet: str
    folder: str


@dataclass(frozen=True)
class HelperSettings:
    wallet: WalletSettings
    service: str
    app_id: str
    timeout_seconds: float
    debug: bool


class SettingsLoadError(RuntimeError):
    """Raised when settings cannot be loaded."""


def default_config_path(environ: Mapping[str, str]) -> Path:
    base = environ.get("XDG_CONFIG_HOME", "").strip()
    root = Path(base) if base else Path.home() / ".config"
    return root / "git-credential-kwallet" / "config.yaml"


def _load_file(path: Path, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise SettingsLoadError(f"config file not found: {path}")
        return {}

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SettingsLoadError(f"invalid YAML in {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SettingsLoadError("config root must be an object")

    unknown = sorted(set(raw) - _CONFIG_KEYS)
    if unknown:
        raise SettingsLoadError(f"unknown config keys: {', '.join(map(str, unknown))}")
    return raw


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _pick(*candidates: Optional[Any]) -> Optional[Any]:
    for value in candidates:
        if value is not None and str(value).strip() != "":
            return value
    return None


def load_settings(
    config_path: Optional[Path] = None,
    wallet: Optional[str] = None,
    folder: Optional[str] = None,
    debug: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> HelperSettings:
    env = os.environ if environ is None else environ

    env_path = env.get(f"{ENV_PREFIX}CONFIG", "").strip()
    if config_path is not None:
        file_raw = _load_file(config_path, required=True)
    elif env_path:
        file_raw = _load_file(Path(env_path), required=True)
    else:
        file_raw = _load_file(default_config_path(env), required=False)

    wallet_name = str(_pick(wallet, env.get(f"{ENV_PREFIX}WALLET"), file_raw.get("wallet")) or "").strip()
    folder_name = str(
        _pick(folder, env.get(f"{ENV_PREFIX}FOLDER"), file_raw.get("folder"), DEFAULT_FOLDER)
    ).strip()

    service = str(_pick(env.get(f"{ENV_PREFIX}SERVICE"), file_raw.get("service"), DEFAULT_SERVICE)).strip()
    if service not in SUPPORTED_SERVICES:
        raise SettingsLoadError(f"invalid service: {service}")

    app_id = str(_pick(file_raw.get("app_id"), DEFAULT_APP_ID)).strip()

    try:
        timeout_seconds = float(_pick(file_raw.get("timeout_seconds"), DEFAULT_TIMEOUT_SECONDS))
    except (TypeError, ValueError) as exc:
        raise SettingsLoadError("timeout_seconds must be a number") from exc
    if timeout_seconds <= 0:
        raise SettingsLoadError("timeout_seconds must be > 0")

    debug_enabled = debug or _flag(_pick(env.get(f"{ENV_PREFIX}DEBUG"), file_raw.get("debug"), False))

    return HelperSettings(
        wallet=WalletSettings(wallet=wallet_name, folder=folder_name),
        service=service,
        app_id=app_id,
        timeout_seconds=timeout_seconds,
        debug=debug_enabled,
    )
