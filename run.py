#!/usr/bin/env python3
"""
Netlify Graph Pre-Build - Entry Point.

Run this before the site build. It reads configuration from a .env file and
the environment, resolves the site's Netlify Graph configuration, persists
every GraphQL operation, and writes the production client and its type
definitions into the Netlify Graph directory.

The sequence (managed by PreBuildOrchestrator) is:
  1. Resolve netlify.toml and the Netlify Graph configuration
  2. Read netlifyGraph.json
  3. Build the site's GraphQL schema
  4. Assemble the operations document
  5. Create a new remote Netlify Graph schema
  6. Persist operations and write the client files
  7. Report persisted and failed functions

Usage:
    python run.py                      # Generate the client
    python run.py --debug              # Verbose output
    python run.py --config site.toml   # Use an alternate netlify.toml
    python run.py --env /path          # Use alternate .env file
    python run.py --version            # Show version
"""

import sys
import argparse
import logging

from netlify_graph_build import PreBuildOrchestrator, __version__


def main():
    """Parse CLI arguments and run the pre-build sequence."""
    parser = argparse.ArgumentParser(
        description="Netlify Graph Pre-Build - Generate the production Netlify Graph client"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--config", "-c", help="Path to netlify.toml")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"netlify-graph-build {__version__}")
        sys.exit(0)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s'
        )
        logging.getLogger('urllib3').setLevel(logging.DEBUG)

    orchestrator = PreBuildOrchestrator(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.debug:
        orchestrator.debug = True
    if args.config:
        orchestrator.config_path = args.config

    print(f"\n{'='*60}")
    print(f"NETLIFY GRAPH PRE-BUILD v{__version__}")
    print("="*60)
    print(f"Site: {orchestrator.site_id or 'unknown'}")
    print(f"Config: {orchestrator.config_path}")

    if not orchestrator.validate_config():
        sys.exit(1)

    results = orchestrator.run()
    orchestrator.print_summary(results)

    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
