"""
netlify-graph-build - Production Netlify Graph client generation at pre-build time.

This package contains the modules of the pre-build sequence. Each module
handles one concern:

  orchestrator.py        Pre-build sequence (token check through reporting)
  netlify_config.py      Read netlify.toml into the resolved build config
  framework_detector.py  Detect the site's web framework
  graph_config.py        Resolve the Netlify Graph configuration
  operations.py          Read the schema and operation files
  graph_client.py        Schema creation and query persistence API calls
  codegen.py             Persist functions, render client and type definitions
  build_reporter.py      Build status and build failure reporting
  settings.py            Default settings
"""

from .build_reporter import BuildFailure, BuildReporter
from .codegen import generate_persisted_functions_file, generate_persisted_functions_source
from .framework_detector import list_frameworks
from .graph_client import GraphClientError, NetlifyGraphClient
from .graph_config import NetlifyGraphConfig, get_netlify_graph_config
from .netlify_config import ConfigError, resolve_config
from .operations import (
    OperationsError,
    extract_functions_from_operation_doc,
    read_graphql_operations_source_files,
)
from .orchestrator import PreBuildOrchestrator

__version__ = "0.1.0"
