"""Project configuration (matcha.yaml): bundle naming, minimum OS versions, support files.

All keys are optional; missing keys fall back to DEFAULT_CONFIG. Unknown keys are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from matcha_tooling.errors import ConfigError
from matcha_tooling.helpers import to_pascal_case

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "matcha.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "name": "matcha",
    "title": None,
    "ios_min_version": "7.0",
    "android_api": 16,
    "support_dir": None,
    "support_import": "golang.org/x/mobile/bind/objc",
    "bridge_import": "github.com/overcyn/matchabridge",
    "support_files": [
        "matchaobjc.h",
        "matchaobjc.m",
        "matchaobjc.go",
        "matchago.h",
        "matchago.m",
        "matchago.go",
    ],
    "headers": ["matchaobjc.h", "matchago.h"],
}


@dataclass(frozen=True)
class MatchaConfig:
    name: str = DEFAULT_CONFIG["name"]
    title: str = "Matcha"
    ios_min_version: str = DEFAULT_CONFIG["ios_min_version"]
    android_api: int = DEFAULT_CONFIG["android_api"]
    support_dir: Path | None = None
    support_import: str = DEFAULT_CONFIG["support_import"]
    bridge_import: str = DEFAULT_CONFIG["bridge_import"]
    support_files: tuple[str, ...] = tuple(DEFAULT_CONFIG["support_files"])
    headers: tuple[str, ...] = tuple(DEFAULT_CONFIG["headers"])


def _str_list(key: str, value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{key} must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def resolve_config(data: dict[str, Any] | None, base_dir: Path | None = None) -> MatchaConfig:
    """Return MatchaConfig with defaults filled. support_dir is resolved relative to base_dir."""
    out = dict(DEFAULT_CONFIG)
    if data:
        out.update({k: v for k, v in data.items() if k in out and v is not None})

    for key in ("name", "ios_min_version", "support_import", "bridge_import"):
        if not isinstance(out[key], (str, int, float)) or not str(out[key]):
            msg = f"{key} must be a non-empty string"
            raise ConfigError(msg)
    try:
        android_api = int(out["android_api"])
    except (TypeError, ValueError) as e:
        msg = f"android_api must be an integer, got {out['android_api']!r}"
        raise ConfigError(msg) from e

    name = str(out["name"])
    title = str(out["title"]) if out["title"] else to_pascal_case(name)
    support_dir = None
    if out["support_dir"]:
        support_dir = Path(str(out["support_dir"]))
        if base_dir is not None and not support_dir.is_absolute():
            support_dir = base_dir / support_dir

    headers = _str_list("headers", out["headers"])
    support_files = _str_list("support_files", out["support_files"])
    missing = [h for h in headers if h not in support_files]
    if missing:
        msg = f"headers not listed in support_files: {', '.join(missing)}"
        raise ConfigError(msg)

    return MatchaConfig(
        name=name,
        title=title,
        ios_min_version=str(out["ios_min_version"]),
        android_api=android_api,
        support_dir=support_dir,
        support_import=str(out["support_import"]),
        bridge_import=str(out["bridge_import"]),
        support_files=support_files,
        headers=headers,
    )


def load_config(path: Path | None = None, project_root: Path | None = None) -> MatchaConfig:
    """Load matcha.yaml from path, or from project_root if present; defaults otherwise."""
    root = project_root or Path.cwd()
    if path is None:
        path = root / CONFIG_FILE_NAME
        if not path.exists():
            log.debug("No %s in %s; using defaults", CONFIG_FILE_NAME, root)
            return resolve_config(None, root)
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        msg = f"Cannot read config {path}: {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise ConfigError(msg) from e
    if data is not None and not isinstance(data, dict):
        msg = f"{path} must contain a mapping"
        raise ConfigError(msg)
    log.debug("Loaded config from %s", path)
    return resolve_config(data, path.parent)
