#!/usr/bin/env python3
"""
docmeta configuration loader.
"""

import os
from pathlib import Path
from typing import Any, Dict, Final, List, Tuple

from docmeta.core.constants import DEFAULT_CODEPAGE
from docmeta.core.utils import merge_dicts, load_json_file

# --- Defaults & locations --- #

DEFAULT_CONFIG: Final[Dict[str, Any]] = {
    "logging": {"level": "WARNING"},
    "new_document": {"author": "", "codepage": DEFAULT_CODEPAGE},
}

GLOBAL_CONFIG_PATH: Final[Path] = Path.home() / ".config" / "docmeta" / "config.json"
PROJECT_CONFIG_NAME: Final[str] = "docmeta.json"

ENV_LOG_LEVEL: Final[str] = "DOCMETA_LOG_LEVEL"
ENV_DEFAULT_AUTHOR: Final[str] = "DOCMETA_DEFAULT_AUTHOR"
ENV_CODEPAGE: Final[str] = "DOCMETA_CODEPAGE"
ENV_VARS: Final[Tuple[str, ...]] = (ENV_LOG_LEVEL, ENV_DEFAULT_AUTHOR, ENV_CODEPAGE)


# --- Public API --- #

def load_config() -> Dict[str, Any]:
    """
    Load docmeta configuration with layered precedence.

    Order:
        1. Built-in defaults
        2. Global config (~/.config/docmeta/config.json)
        3. Project config (./docmeta.json)
        4. Environment overrides:
           - DOCMETA_LOG_LEVEL
           - DOCMETA_DEFAULT_AUTHOR
           - DOCMETA_CODEPAGE (integer)

    Returns:
        A merged configuration dictionary.

    Raises:
        ValueError: if a config file holds invalid JSON or DOCMETA_CODEPAGE
            is not an integer.
    """
    # 1-3) defaults, then global and project files
    config = merge_dicts(
        DEFAULT_CONFIG,
        load_json_file(GLOBAL_CONFIG_PATH),
        load_json_file(project_config_path()),
    )

    # 4) environment overrides
    log_level_env = os.getenv(ENV_LOG_LEVEL)
    if log_level_env:
        config.setdefault("logging", {})["level"] = log_level_env

    author_env = os.getenv(ENV_DEFAULT_AUTHOR)
    if author_env is not None:
        config.setdefault("new_document", {})["author"] = author_env

    codepage_env = os.getenv(ENV_CODEPAGE)
    if codepage_env:
        config.setdefault("new_document", {})["codepage"] = _parse_codepage_env(codepage_env)

    return config


def project_config_path() -> Path:
    return Path.cwd() / PROJECT_CONFIG_NAME


def config_sources() -> List[Tuple[str, str]]:
    """
    Describe the layers `load_config` would read, lowest precedence first.

    Each entry is (layer, detail). File layers are listed whether or not the
    file exists; the detail says which. Only environment variables that are
    set are listed.
    """
    sources = [("defaults", "built-in")]
    for layer, path in (("global", GLOBAL_CONFIG_PATH), ("project", project_config_path())):
        state = "found" if path.is_file() else "missing"
        sources.append((layer, f"{path} ({state})"))
    for name in ENV_VARS:
        if os.getenv(name) is not None:
            sources.append(("env", name))
    return sources


# --- Internals --- #

def _parse_codepage_env(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as e:
        raise ValueError(f"DOCMETA_CODEPAGE must be an integer, got {value!r}") from e
