"""
Netlify Config - Reads netlify.toml into the resolved build configuration.

Only the sections the Netlify Graph build step consumes are returned:

  build               [build] table (command, publish, functions, ...)
  dev                 [dev] table
  functions           [functions] table
  graph               [graph] table, the user's Netlify Graph overrides
  functionsDirectory  [functions].directory, else [build].functions

Every section is a fresh copy, so callers may mutate the result without
touching the parsed document.
"""

import os
import tomllib
from typing import Any, Dict, Optional


class ConfigError(Exception):
    """Raised when netlify.toml exists but cannot be parsed."""


def resolve_config(config_path: Optional[str] = None, debug: bool = False) -> Dict[str, Any]:
    """Load and resolve the Netlify build configuration.

    Args:
        config_path: Path to netlify.toml. A missing file resolves to an
                     empty configuration.
        debug: Print the path being read.

    Returns:
        The resolved configuration dict.

    Raises:
        ConfigError: If the file is not valid TOML.
    """
    raw: Dict[str, Any] = {}

    if config_path and os.path.exists(config_path):
        if debug:
            print(f"  Reading Netlify config: {config_path}")
        try:
            with open(config_path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Could not parse {config_path}: {e}") from e
    elif debug:
        print(f"  No Netlify config found at {config_path}, using defaults")

    build = dict(raw.get("build") or {})
    functions = dict(raw.get("functions") or {})

    config = {
        "build": build,
        "dev": dict(raw.get("dev") or {}),
        "functions": functions,
        "graph": dict(raw.get("graph") or {}),
        "functionsDirectory": functions.get("directory") or build.get("functions"),
    }
    return config
