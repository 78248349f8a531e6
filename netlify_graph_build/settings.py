"""
Settings - Default configuration values for the Netlify Graph build step.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set, and the Netlify Graph
base defaults that every framework-specific configuration starts from.

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --config)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  NETLIFY_CONFIG_PATH     Path to netlify.toml (default: ./netlify.toml)
  NETLIFY_GRAPH_JSON      State file written by `netlify graph:init`
  NETLIFY_GRAPH_API_URL   GraphQL endpoint used for schema/query persistence
  REQUEST_TIMEOUT         Seconds before an API call is abandoned
  DEBUG                   Whether to print verbose output (default: False)
"""

PERSIST_TOKEN_ENV_VAR = "NETLIFY_GRAPH_PERSIST_QUERY_TOKEN"
SITE_ID_ENV_VAR = "SITE_ID"

# App id of the Netlify Graph control plane; schema and persisted query
# mutations are executed against it on behalf of the site.
NETLIFY_GRAPH_CONTROL_APP_ID = "0b066ba6-ed39-4db8-a497-ba0be34d5b2a"

DEFAULT_SETTINGS = {
    "NETLIFY_CONFIG_PATH": "netlify.toml",
    "NETLIFY_GRAPH_JSON": "netlifyGraph.json",
    "NETLIFY_GRAPH_API_URL": "https://serve.onegraph.com/graphql",
    "NETLIFY_GRAPH_CLIENT_URL": "https://graph.netlify.com/graphql",
    "REQUEST_TIMEOUT": 30,
    "DEBUG": False,
}

# File and directory names shared by every framework layout
DEFAULT_SOURCE_OPERATIONS_FILENAME = "netlifyGraphOperationsLibrary.graphql"
DEFAULT_SOURCE_OPERATIONS_DIRECTORY_NAME = "operations"
DEFAULT_GRAPHQL_SCHEMA_FILENAME = "netlifyGraphSchema.graphql"
DEFAULT_FUNCTIONS_PATH = ["netlify", "functions"]
TSCONFIG_FILENAME = "tsconfig.json"

# Tool-wide Netlify Graph defaults. Framework defaults and user overrides
# from the [graph] section of netlify.toml are layered on top of these.
DEFAULT_NETLIFY_GRAPH_CONFIG = {
    "extension": "js",
    "netlifyGraphPath": ["netlify", "functions", "netlifyGraph"],
    "moduleType": "esm",
    "language": "javascript",
    "runtimeTargetEnv": "node",
    "graphQLConfigJsonFilename": [".graphqlrc.json"],
}
