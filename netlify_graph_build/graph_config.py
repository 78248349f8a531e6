"""
Graph Config - Resolve the Netlify Graph configuration for a site.

The configuration is built from three layers:

  1. Tool-wide defaults       settings.DEFAULT_NETLIFY_GRAPH_CONFIG
  2. Framework defaults       one factory per detected framework (Next.js,
                              Remix, or the generic layout for everything else)
  3. User overrides           the [graph] section of netlify.toml

Every setting resolves on its own: the user's value wins if present,
otherwise the merged framework/tool default is used. Path-like settings are
kept as lists of path segments, split on os.sep with empty segments removed.
An absolute path keeps os.sep as its first segment so that
os.path.join(*segments) rebuilds it.

Typical usage:
    config = resolve_config("netlify.toml")
    graph_config = get_netlify_graph_config(config)
    schema_path = graph_config.resolve(graph_config.graphql_schema_filename)
"""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .framework_detector import list_frameworks
from .settings import (
    DEFAULT_FUNCTIONS_PATH,
    DEFAULT_GRAPHQL_SCHEMA_FILENAME,
    DEFAULT_NETLIFY_GRAPH_CONFIG,
    DEFAULT_SOURCE_OPERATIONS_DIRECTORY_NAME,
    DEFAULT_SOURCE_OPERATIONS_FILENAME,
    TSCONFIG_FILENAME,
)


# User keys whose values are filesystem paths, mapped to their config field
PATH_SETTINGS = {
    "netlifyGraphPath": "netlify_graph_path",
    "netlifyGraphImplementationFilename": "netlify_graph_implementation_filename",
    "netlifyGraphTypeDefinitionsFilename": "netlify_graph_type_definitions_filename",
    "graphQLOperationsSourceFilename": "graphql_operations_source_filename",
    "graphQLOperationsSourceDirectory": "graphql_operations_source_directory",
    "graphQLSchemaFilename": "graphql_schema_filename",
    "graphQLConfigJsonFilename": "graphql_config_json_filename",
    "netlifyGraphRequirePath": "netlify_graph_require_path",
    "customGeneratorFile": "custom_generator_file",
}

# Every key a user may set in [graph]; anything else lands in `extra`
KNOWN_SETTINGS = set(PATH_SETTINGS) | {
    "functionsPath",
    "webhookBasePath",
    "moduleType",
    "language",
    "frameworkId",
    "runtimeTargetEnv",
    "extension",
}


@dataclass
class NetlifyGraphConfig:
    """The fully resolved Netlify Graph configuration."""

    functions_path: List[str]
    webhook_base_path: str
    netlify_graph_path: List[str]
    netlify_graph_implementation_filename: List[str]
    netlify_graph_type_definitions_filename: List[str]
    graphql_operations_source_filename: List[str]
    graphql_operations_source_directory: List[str]
    graphql_schema_filename: List[str]
    graphql_config_json_filename: List[str]
    netlify_graph_require_path: List[str]
    framework: str = "default"
    language: str = "javascript"
    module_type: str = "esm"
    extension: str = "js"
    runtime_target_env: str = "node"
    custom_generator_file: Optional[List[str]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def resolve(segments: List[str]) -> str:
        """Turn a list of path segments into an absolute filesystem path."""
        return os.path.abspath(os.path.join(*segments))


def filter_relative_path_items(items: List[str]) -> List[str]:
    """Drop empty path segments (left behind by leading or doubled separators)."""
    return [part for part in items if part != ""]


def split_path(value) -> List[str]:
    """Split a user-supplied path into segments.

    Accepts a string ("lib/netlifyGraph") or a list of segments (TOML arrays).
    """
    if isinstance(value, (list, tuple)):
        return filter_relative_path_items([str(part) for part in value])

    text = str(value)
    prefix = [os.sep] if os.path.isabs(text) else []
    return filter_relative_path_items(prefix + text.split(os.sep))


def _anchor(segments: List[str], site_root: List[str]) -> List[str]:
    """Prefix relative segments with the site root; absolute ones pass through."""
    if segments and segments[0] == os.sep:
        return segments
    return [*site_root, *segments]


# ---------------------------------------------------------------------------
# Framework default factories
# ---------------------------------------------------------------------------

def _graph_files(base_config: Dict, netlify_graph_path: List[str]) -> Dict[str, List[str]]:
    """Filenames that live directly inside the Netlify Graph directory."""
    return {
        "netlifyGraphImplementationFilename": [
            *netlify_graph_path, f"index.{base_config['extension']}"
        ],
        "netlifyGraphTypeDefinitionsFilename": [*netlify_graph_path, "index.d.ts"],
        "graphQLOperationsSourceFilename": [
            *netlify_graph_path, DEFAULT_SOURCE_OPERATIONS_FILENAME
        ],
        "graphQLOperationsSourceDirectory": [
            *netlify_graph_path, DEFAULT_SOURCE_OPERATIONS_DIRECTORY_NAME
        ],
        "graphQLSchemaFilename": [*netlify_graph_path, DEFAULT_GRAPHQL_SCHEMA_FILENAME],
    }


def make_default_netlify_graph_config(
    base_config: Dict,
    detected_functions_path: List[str],
    site_root: List[str],
) -> Dict[str, Any]:
    """Default layout for a generic site: everything under the functions directory."""
    functions_path = filter_relative_path_items(list(detected_functions_path))
    graph_path = [*functions_path, "netlifyGraph"]

    return {
        "functionsPath": functions_path,
        "webhookBasePath": "/.netlify/functions",
        "netlifyGraphPath": graph_path,
        **_graph_files(base_config, graph_path),
        "netlifyGraphRequirePath": [".", "netlifyGraph"],
        "moduleType": base_config.get("moduleType") or "esm",
    }


def make_default_nextjs_netlify_graph_config(
    base_config: Dict,
    detected_functions_path: List[str],
    site_root: List[str],
) -> Dict[str, Any]:
    """Next.js layout: API routes under pages/api, client under lib/netlifyGraph."""
    functions_path = filter_relative_path_items([*site_root, "pages", "api"])
    graph_path = filter_relative_path_items(
        [*site_root, "lib", "netlifyGraph"]
    )

    return {
        "functionsPath": functions_path,
        "webhookBasePath": "/api",
        "netlifyGraphPath": graph_path,
        **_graph_files(base_config, graph_path),
        "netlifyGraphRequirePath": ["..", "..", "lib", "netlifyGraph"],
        "moduleType": base_config.get("moduleType") or "esm",
    }


def make_default_remix_netlify_graph_config(
    base_config: Dict,
    detected_functions_path: List[str],
    site_root: List[str],
) -> Dict[str, Any]:
    """Remix layout: webhooks route, client under netlify/functions/netlifyGraph."""
    functions_path = filter_relative_path_items(list(detected_functions_path))
    graph_path = filter_relative_path_items(
        [*site_root, *DEFAULT_NETLIFY_GRAPH_CONFIG["netlifyGraphPath"]]
    )

    return {
        "functionsPath": functions_path,
        "webhookBasePath": "/webhooks",
        "netlifyGraphPath": graph_path,
        **_graph_files(base_config, graph_path),
        "netlifyGraphRequirePath": ["..", "..", "netlify", "functions", "netlifyGraph"],
        # Remix only supports ES modules
        "moduleType": "esm",
    }


DEFAULT_FRAMEWORK_LOOKUP: Dict[str, Callable[..., Dict[str, Any]]] = {
    "next": make_default_nextjs_netlify_graph_config,
    "remix": make_default_remix_netlify_graph_config,
    "default": make_default_netlify_graph_config,
}


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def get_site_root(project_dir: str) -> List[str]:
    """Return the absolute project directory as path segments."""
    absolute = os.path.abspath(project_dir)
    return [os.sep, *filter_relative_path_items(absolute.split(os.sep))]


def get_detected_functions_path(config: Dict, site_root: List[str]) -> List[str]:
    """Functions directory from netlify.toml, else netlify/functions, anchored at the site root."""
    functions_directory = config.get("functionsDirectory")
    if functions_directory:
        return _anchor(split_path(functions_directory), site_root)
    return [*site_root, *DEFAULT_FUNCTIONS_PATH]


def detect_language(project_dir: str) -> str:
    """A tsconfig.json at the project root means the site is TypeScript."""
    if os.path.exists(os.path.join(project_dir, TSCONFIG_FILENAME)):
        return "typescript"
    return "javascript"


def get_netlify_graph_config(
    config: Dict,
    project_dir: Optional[str] = None,
    frameworks: Optional[List[Dict]] = None,
    debug: bool = False,
) -> NetlifyGraphConfig:
    """Resolve the Netlify Graph configuration for the site in project_dir.

    Args:
        config: The resolved Netlify build configuration (see netlify_config).
        project_dir: Site root; defaults to the current working directory.
        frameworks: Pre-detected frameworks. Detected from project_dir if None.
        debug: Print the detected framework and the resolved paths.

    Returns:
        The resolved NetlifyGraphConfig.
    """
    project_dir = project_dir or os.getcwd()
    user_config = dict(config.get("graph") or {})

    if frameworks is None:
        frameworks = list_frameworks(project_dir, debug)
    detected_framework_id = frameworks[0]["id"] if frameworks else None
    framework_id = user_config.get("frameworkId") or detected_framework_id or "default"

    site_root = get_site_root(project_dir)
    detected_functions_path = get_detected_functions_path(config, site_root)

    base_config = {**DEFAULT_NETLIFY_GRAPH_CONFIG, **user_config}

    # Defaults follow the detected framework; frameworkId only relabels it
    make_default_framework_config = DEFAULT_FRAMEWORK_LOOKUP.get(
        detected_framework_id, DEFAULT_FRAMEWORK_LOOKUP["default"]
    )
    framework_config = make_default_framework_config(
        base_config=base_config,
        detected_functions_path=detected_functions_path,
        site_root=site_root,
    )
    default_config = {**DEFAULT_NETLIFY_GRAPH_CONFIG, **framework_config}

    resolved = {}
    for key, attr in PATH_SETTINGS.items():
        if user_config.get(key):
            resolved[attr] = split_path(user_config[key])
        else:
            default = default_config.get(key)
            resolved[attr] = list(default) if default is not None else None

    if user_config.get("functionsPath"):
        functions_path = _anchor(split_path(user_config["functionsPath"]), site_root)
    else:
        functions_path = default_config["functionsPath"]

    graph_config = NetlifyGraphConfig(
        functions_path=functions_path,
        webhook_base_path=user_config.get("webhookBasePath") or default_config["webhookBasePath"],
        framework=framework_id,
        language=user_config.get("language") or detect_language(project_dir),
        module_type=user_config.get("moduleType") or default_config["moduleType"],
        extension=base_config["extension"],
        runtime_target_env=(
            user_config.get("runtimeTargetEnv")
            or default_config.get("runtimeTargetEnv")
            or "node"
        ),
        extra={k: v for k, v in user_config.items() if k not in KNOWN_SETTINGS},
        **resolved,
    )

    if debug:
        print(f"  Framework: {graph_config.framework}")
        print(f"  Language: {graph_config.language}")
        print(f"  Netlify Graph path: {graph_config.resolve(graph_config.netlify_graph_path)}")

    return graph_config
