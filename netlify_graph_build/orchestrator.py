"""
Pre-Build Orchestrator - Production Netlify Graph client generation.

This module ties the other modules together into the sequence that runs
before a site is built:

  Step 0: TOKEN CHECK
      Without NETLIFY_GRAPH_PERSIST_QUERY_TOKEN nothing can be persisted.
      The step logs a warning, adds a build status entry and stops without
      failing the build.

  Step 1: RESOLVE CONFIGURATION
      Reads netlify.toml (netlify_config.resolve_config) and resolves the
      Netlify Graph configuration for the detected framework
      (graph_config.get_netlify_graph_config). Fails the build if the legacy
      single-file operations library exists, whether or not operation files
      are present too.

  Step 2: READ netlifyGraph.json
      The state file written by `netlify graph:init` lists the services
      enabled for the site. Missing or malformed fails the build.

  Step 3: LOAD SCHEMA
      Reads and builds the site's GraphQL schema file with graphql-core.

  Step 4: READ OPERATIONS
      Assembles the operations document from operations/*.graphql.
      An empty document stops the step without failing the build.

  Step 5: CREATE REMOTE SCHEMA
      Creates a new Netlify Graph schema for the enabled services.

  Step 6: GENERATE CLIENT
      Persists every operation and writes the client and type definitions
      (codegen.generate_persisted_functions_file).

  Step 7: REPORT
      Any operation that failed to persist fails the build, naming each one.

Configuration:
    Loaded from environment variables (typically via a .env file).
    Required for generation: NETLIFY_GRAPH_PERSIST_QUERY_TOKEN, SITE_ID.
    See settings.py for defaults.

Typical usage:
    orchestrator = PreBuildOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import json
import os
import traceback
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from graphql import GraphQLError, GraphQLSchema, build_schema, parse

from .build_reporter import BuildFailure, BuildReporter
from .codegen import generate_persisted_functions_file
from .graph_client import NetlifyGraphClient
from .graph_config import NetlifyGraphConfig, get_netlify_graph_config
from .netlify_config import resolve_config
from .operations import (
    extract_functions_from_operation_doc,
    read_graphql_operations_source_files,
    read_graphql_schema_file,
    read_legacy_operations_source_file,
)
from .settings import DEFAULT_SETTINGS, PERSIST_TOKEN_ENV_VAR, SITE_ID_ENV_VAR


PLUGIN_TITLE = "Netlify Graph Build Plugin"

MISSING_TOKEN_MESSAGE = (
    f"Missing the {PERSIST_TOKEN_ENV_VAR} environment variable, "
    "skipping production Netlify Graph client generation.\n\n"
    "Run `netlify graph:init` to generate a new token."
)
NETLIFY_GRAPH_JSON_ERROR = (
    "Error reading netlifyGraph.json. Be sure to run `netlify graph:init` "
    "and commit the resulting json file."
)
LEGACY_OPERATIONS_ERROR = (
    "Found legacy single-file operations library. "
    "Run `netlify graph:library` to migrate"
)
GENERIC_FAILURE_MESSAGE = "Error generating a production Netlify Graph client"


def _banner(title: str):
    print(f"\n{'='*60}")
    print(title)
    print("="*60)


class PreBuildOrchestrator:
    """Runs the pre-build Netlify Graph client generation.

    Attributes:
        netlify_token: Persistence token (NETLIFY_GRAPH_PERSIST_QUERY_TOKEN).
        site_id: Netlify site id; also the Netlify Graph app id.
        config_path: Path to netlify.toml.
        netlify_graph_json_path: Path to the netlifyGraph.json state file.
        debug: Whether to enable verbose output (default: False).
        reporter: Build status / failure reporting.
    """

    def __init__(
        self,
        env_file: str = "./.env",
        reporter: Optional[BuildReporter] = None,
        client: Optional[NetlifyGraphClient] = None,
    ):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
            reporter: Reporter to record statuses on; a new one by default.
            client: API client; built from settings on first use by default.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")

        self.netlify_token = os.getenv(PERSIST_TOKEN_ENV_VAR, "")
        self.site_id = os.getenv(SITE_ID_ENV_VAR, "")

        self.config_path = os.getenv("NETLIFY_CONFIG_PATH", DEFAULT_SETTINGS["NETLIFY_CONFIG_PATH"])
        self.netlify_graph_json_path = os.getenv(
            "NETLIFY_GRAPH_JSON", DEFAULT_SETTINGS["NETLIFY_GRAPH_JSON"]
        )
        self.api_url = os.getenv("NETLIFY_GRAPH_API_URL", DEFAULT_SETTINGS["NETLIFY_GRAPH_API_URL"])
        self.timeout = int(os.getenv("REQUEST_TIMEOUT", str(DEFAULT_SETTINGS["REQUEST_TIMEOUT"])))
        self.debug = os.getenv("DEBUG", str(DEFAULT_SETTINGS["DEBUG"])).lower() == "true"

        self.reporter = reporter or BuildReporter()
        self._client = client

    @property
    def client(self) -> NetlifyGraphClient:
        if self._client is None:
            self._client = NetlifyGraphClient(self.api_url, self.timeout, self.debug)
        return self._client

    def validate_config(self) -> bool:
        """Check the values needed once a token is present.

        A missing token is not an error here: on_pre_build() skips generation
        in that case.
        """
        errors = []
        if self.netlify_token and not self.site_id:
            errors.append(f"{SITE_ID_ENV_VAR} is required to persist Netlify Graph operations")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def on_pre_build(self) -> Dict[str, Any]:
        """Run the pre-build sequence.

        Returns:
            A summary dict. "skipped" is set when generation was skipped
            without failing the build.

        Raises:
            BuildFailure: When the build has to fail.
        """
        if not self.netlify_token:
            print(f"\n  WARNING: {MISSING_TOKEN_MESSAGE}")
            self.reporter.show_status(
                title=f"{PLUGIN_TITLE}: Missing {PERSIST_TOKEN_ENV_VAR}",
                summary=(
                    "Skipped production Netlify Graph client generation due to missing token\n\n"
                    "Run `netlify graph:init` to generate a new token"
                ),
            )
            return {"skipped": True, "reason": "missing_token"}

        try:
            return self._generate()
        except BuildFailure:
            raise
        except Exception as e:
            if self.debug:
                traceback.print_exc()
            self.reporter.fail_build(GENERIC_FAILURE_MESSAGE, error=e)

    def _generate(self) -> Dict[str, Any]:
        _banner("STEP 1: RESOLVE CONFIGURATION")
        config = resolve_config(self.config_path, self.debug)
        netlify_graph_config = get_netlify_graph_config(config, debug=self.debug)
        print(f"  Framework: {netlify_graph_config.framework}")

        if read_legacy_operations_source_file(netlify_graph_config) is not None:
            self.reporter.fail_build(LEGACY_OPERATIONS_ERROR)

        _banner("STEP 2: READ netlifyGraph.json")
        netlify_graph_json = self._read_netlify_graph_json()
        enabled_services = netlify_graph_json.get("enabledServices") or []
        print(f"  Enabled services: {', '.join(enabled_services) or 'none'}")

        _banner("STEP 3: LOAD SCHEMA")
        schema = self._load_schema(netlify_graph_config)
        print("  Schema built")

        _banner("STEP 4: READ OPERATIONS")
        operations_doc = read_graphql_operations_source_files(netlify_graph_config, self.debug)
        if not operations_doc.strip():
            print(
                "  WARNING: No Graph operations library found, "
                "skipping production client generation."
            )
            return {"skipped": True, "reason": "no_operations"}

        parsed_doc = parse(operations_doc)
        fragments, functions = extract_functions_from_operation_doc(parsed_doc)
        print(f"  Functions: {len(functions)}")
        print(f"  Fragments: {len(fragments)}")

        _banner("STEP 5: CREATE REMOTE SCHEMA")
        print("  Creating a new Netlify Graph schema")
        schema_id = self.client.create_graphql_schema(
            site_id=self.site_id,
            access_token=self.netlify_token,
            enabled_services=enabled_services,
        )
        print(f"  Created a new Netlify Graph schema: {schema_id}")

        _banner("STEP 6: GENERATE CLIENT")
        failed_persisted_functions, function_definitions = generate_persisted_functions_file(
            netlify_graph_config=netlify_graph_config,
            netlify_token=self.netlify_token,
            site_id=self.site_id,
            schema=schema,
            operations_doc=operations_doc,
            functions=functions,
            fragments=fragments,
            schema_id=schema_id,
            client=self.client,
            logger=print,
            debug=self.debug,
        )

        _banner("STEP 7: REPORT")
        if failed_persisted_functions:
            failed_function_names = [
                failed.attempted_function.operation_name
                for failed in failed_persisted_functions
            ]
            self.reporter.show_status(
                title=(
                    f"{PLUGIN_TITLE}: Failed to persist "
                    f"{len(failed_function_names)} Graph functions"
                ),
                summary="See the log for details",
            )
            self.reporter.fail_build(
                "Error persisting Netlify Graph operations for production: "
                f"[{', '.join(failed_function_names)}]",
                failed_persisted_functions=failed_persisted_functions,
            )

        self.reporter.show_status(
            title=(
                f"{PLUGIN_TITLE}: Successfully persisted "
                f"{len(function_definitions)} Graph functions"
            ),
            summary="See the log for details",
        )

        return {
            "skipped": False,
            "framework": netlify_graph_config.framework,
            "schema_id": schema_id,
            "functions": len(function_definitions),
            "fragments": len(fragments),
            "implementation_file": netlify_graph_config.resolve(
                netlify_graph_config.netlify_graph_implementation_filename
            ),
            "type_definitions_file": netlify_graph_config.resolve(
                netlify_graph_config.netlify_graph_type_definitions_filename
            ),
        }

    def _read_netlify_graph_json(self) -> Dict[str, Any]:
        try:
            with open(self.netlify_graph_json_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        except (IOError, ValueError) as e:
            self.reporter.fail_build(NETLIFY_GRAPH_JSON_ERROR, error=e)
        return data

    def _load_schema(self, netlify_graph_config: NetlifyGraphConfig) -> GraphQLSchema:
        schema_string = read_graphql_schema_file(netlify_graph_config)
        try:
            return build_schema(schema_string)
        except (GraphQLError, TypeError) as e:
            print(f"  Error parsing schema: {e}")
            self.reporter.fail_build("Failed to parse Netlify GraphQL schema", error=e)

    def run(self) -> Dict[str, Any]:
        """Run on_pre_build() and collect the outcome into a results dict.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - success: False if the build was failed
                - skipped: True if generation was skipped without failing
                - summary: The dict returned by on_pre_build()
                - error/details: Failure message and details (if success=False)
                - statuses: Build status entries shown during the run
        """
        results = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "plugin": "netlify-graph-build",
            "config": {
                "site_id": self.site_id,
                "config_path": self.config_path,
            },
            "success": False,
            "skipped": False,
        }

        try:
            summary = self.on_pre_build()
            results["success"] = True
            results["skipped"] = summary.get("skipped", False)
            results["summary"] = summary
        except BuildFailure as e:
            results["error"] = e.message
            results["details"] = {key: str(value) for key, value in e.details.items()}

        results["statuses"] = [asdict(entry) for entry in self.reporter.statuses]
        results["completed_at"] = datetime.now(timezone.utc).isoformat()
        return results

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        _banner("NETLIFY GRAPH PRE-BUILD COMPLETE")
        if not results.get("success"):
            status = "FAILED"
        elif results.get("skipped"):
            status = "SKIPPED"
        else:
            status = "SUCCESS"
        print(f"Status: {status}")

        summary = results.get("summary", {})
        if summary and not summary.get("skipped"):
            print(f"Framework: {summary.get('framework', 'N/A')}")
            print(f"Schema: {summary.get('schema_id', 'N/A')}")
            print(f"Functions: {summary.get('functions', 0)}")
            print(f"Client: {summary.get('implementation_file', 'N/A')}")
            print(f"Types: {summary.get('type_definitions_file', 'N/A')}")
        elif summary:
            print(f"Reason: {summary.get('reason', 'N/A')}")

        if results.get("error"):
            print(f"Error: {results['error']}")
