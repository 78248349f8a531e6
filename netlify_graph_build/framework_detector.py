"""
Framework Detector - Identify the web framework a site is built with.

Detection uses two kinds of evidence found in the project directory:
  - npm packages listed in package.json (dependencies or devDependencies)
  - framework config files (next.config.js, remix.config.js, ...)

Frameworks are checked in the order of _FRAMEWORKS, so meta-frameworks
(Next.js, Remix, Gatsby) win over the bundlers they are built on (Vite).
"""

import json
import os
from typing import Dict, List


_FRAMEWORKS: List[Dict] = [
    {
        "id": "next",
        "name": "Next.js",
        "npm_dependencies": ["next"],
        "config_files": ["next.config.js", "next.config.mjs", "next.config.ts"],
    },
    {
        "id": "remix",
        "name": "Remix",
        "npm_dependencies": ["remix", "@remix-run/react", "@remix-run/netlify"],
        "config_files": ["remix.config.js", "remix.config.mjs"],
    },
    {
        "id": "gatsby",
        "name": "Gatsby",
        "npm_dependencies": ["gatsby"],
        "config_files": ["gatsby-config.js", "gatsby-config.ts"],
    },
    {
        "id": "nuxt",
        "name": "Nuxt",
        "npm_dependencies": ["nuxt", "nuxt3"],
        "config_files": ["nuxt.config.js", "nuxt.config.ts"],
    },
    {
        "id": "sveltekit",
        "name": "SvelteKit",
        "npm_dependencies": ["@sveltejs/kit"],
        "config_files": ["svelte.config.js"],
    },
    {
        "id": "astro",
        "name": "Astro",
        "npm_dependencies": ["astro"],
        "config_files": ["astro.config.mjs", "astro.config.ts"],
    },
    {
        "id": "create-react-app",
        "name": "Create React App",
        "npm_dependencies": ["react-scripts"],
        "config_files": [],
    },
    {
        "id": "vite",
        "name": "Vite",
        "npm_dependencies": ["vite"],
        "config_files": ["vite.config.js", "vite.config.ts"],
    },
]


def _read_npm_dependencies(project_dir: str, debug: bool = False) -> set:
    """Return the package names declared in package.json, or an empty set."""
    package_json = os.path.join(project_dir, "package.json")
    if not os.path.exists(package_json):
        return set()

    try:
        with open(package_json, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        if debug:
            print(f"  Could not read package.json: {e}")
        return set()

    if not isinstance(data, dict):
        return set()

    names = set()
    for key in ("dependencies", "devDependencies"):
        names.update((data.get(key) or {}).keys())
    return names


def list_frameworks(project_dir: str = ".", debug: bool = False) -> List[Dict[str, str]]:
    """Detect the frameworks used in project_dir.

    Returns:
        A list of {"id", "name"} dicts in priority order. The first entry is
        the framework the site is considered to be built with.
    """
    dependencies = _read_npm_dependencies(project_dir, debug)
    detected = []

    for framework in _FRAMEWORKS:
        has_dependency = any(dep in dependencies for dep in framework["npm_dependencies"])
        has_config = any(
            os.path.exists(os.path.join(project_dir, filename))
            for filename in framework["config_files"]
        )
        if has_dependency or has_config:
            detected.append({"id": framework["id"], "name": framework["name"]})

    if debug:
        print(f"  Detected frameworks: {[f['id'] for f in detected] or 'none'}")

    return detected
