from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import find_dotenv, load_dotenv

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {"path": "data/nexus_state.json"},
    "board": {"base_url": "https://api.trello.com/1", "timeout_s": 30},
    "llm": {
        "max_output_tokens": 2000,
        "timeout_s": 60,
        "openai_api_key_env": "OPENAI_API_KEY",
        "gemini_api_key_env": "GEMINI_API_KEY",
    },
    "session": {"concurrency": 4},
}


class ConfigError(ValueError):
    pass


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _expand_env(value: Any) -> Any:
    # "${NAME}" -> os.environ["NAME"] (empty string when unset)
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load the YAML application config merged over the built-in defaults.
    Variables from a local .env file are loaded first so ``${NAME}`` values
    can refer to them.
    """
    load_dotenv(find_dotenv(usecwd=True))
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return _merge(DEFAULT_CONFIG, _expand_env(raw))


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)
