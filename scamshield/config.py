"""
scamshield/config.py
Persisted key-value config. Lives in scamshield_config.json.
Classifier endpoint, API key, mock-mode flag and keyword edits are each
independently settable; missing keys fall back to DEFAULT_CONFIG.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "scamshield_config.json"

DEFAULT_CONFIG = {
    "ai_endpoint": "",
    "ai_key": "",
    "mock_mode": True,
    "db_path": "scamshield.db",
    "request_timeout_sec": 30,
    "custom_keywords": [],
    "removed_keywords": [],
}


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return Path(root) / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from scamshield_config.json. Returns defaults if missing."""
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("config root must be an object")
            return {**DEFAULT_CONFIG, **data}
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning(f"Config load failed: {e}")
    return dict(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to scamshield_config.json."""
    path = _config_path(project_root)
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return path


def update_config(changes: Dict[str, Any], project_root: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read-modify-write a subset of keys. Unknown keys are rejected so a
    typo in the API or CLI never lands silently in the file.
    """
    unknown = set(changes) - set(DEFAULT_CONFIG)
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(sorted(unknown))}")
    config = load_config(project_root)
    config.update(changes)
    save_config(config, project_root)
    return config


def masked(config: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of config safe to display — API key reduced to its last 4 chars."""
    out = dict(config)
    key = out.get("ai_key") or ""
    out["ai_key"] = ("*" * 8 + key[-4:]) if key else ""
    return out
