"""
Codegen - Persist Netlify Graph functions and render the production client.

For every named query or mutation in the operations document:

  1. The operation and every fragment it (transitively) spreads are joined
     into one document and persisted through NetlifyGraphClient, tagged with
     the schema id created for this build.
  2. A client function is rendered that calls the persisted document by
     doc_id instead of sending the query text.

Two sources are produced:

  client source            index.js - ESM or CommonJS per moduleType
  type definitions source  index.d.ts - variable types derived from the schema

A failure to persist one function does not stop the others; it is recorded
as a FailedPersistedFunction and left out of the generated client.

Sites with their own generator set customGeneratorFile in [graph]; that
Python file must define:

    def generate(config, functions, fragments, schema, operations_doc)
        -> (client_source, type_definitions_source)

where functions are the PersistedFunction records that were stored.
"""

import importlib.util
import json
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from graphql import GraphQLEnumType, GraphQLInputObjectType, GraphQLScalarType, GraphQLSchema

from .graph_client import NetlifyGraphClient
from .graph_config import NetlifyGraphConfig
from .operations import (
    ExtractedFragment,
    ExtractedFunction,
    ensure_netlify_graph_path,
)
from .settings import DEFAULT_SETTINGS


GENERATED_HEADER = "// GENERATED VIA NETLIFY GRAPH, EDITS WILL BE OVERWRITTEN"

CLIENT_FUNCTION_PREFIXES = {
    "query": "fetch",
    "mutation": "execute",
}

SCALAR_TS_TYPES = {
    "String": "string",
    "ID": "string",
    "Int": "number",
    "Float": "number",
    "Boolean": "boolean",
}


@dataclass
class PersistedFunction:
    function: ExtractedFunction
    persisted_query_id: str
    client_function_name: str


@dataclass
class FailedPersistedFunction:
    attempted_function: ExtractedFunction
    error: str


@dataclass
class GeneratedSource:
    client_source: str
    type_definitions_source: str
    function_definitions: List[PersistedFunction] = field(default_factory=list)
    failed_persisted_functions: List[FailedPersistedFunction] = field(default_factory=list)


def _comment_lines(text: str) -> List[str]:
    """Split a description into lines safe to place inside a block comment."""
    return [line.replace("*/", "* /") for line in text.splitlines()] or [""]


def client_function_name(function: ExtractedFunction) -> str:
    prefix = CLIENT_FUNCTION_PREFIXES.get(function.kind, "fetch")
    name = function.operation_name
    return f"{prefix}{name[:1].upper()}{name[1:]}"


def collect_fragment_dependencies(
    fragment_names: List[str], fragments: Dict[str, ExtractedFragment]
) -> List[ExtractedFragment]:
    """Resolve fragment names to fragments, following nested spreads once each."""
    resolved: List[ExtractedFragment] = []
    seen = set()
    pending = list(fragment_names)

    while pending:
        name = pending.pop(0)
        if name in seen:
            continue
        seen.add(name)
        fragment = fragments.get(name)
        if fragment is None:
            raise KeyError(f"Unknown fragment '{name}'")
        resolved.append(fragment)
        pending.extend(fragment.fragment_names)

    return resolved


def build_persistable_document(
    function: ExtractedFunction, fragments: Dict[str, ExtractedFragment]
) -> str:
    parts = [function.operation_string]
    parts.extend(
        fragment.fragment_string
        for fragment in collect_fragment_dependencies(function.fragment_names, fragments)
    )
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# TypeScript rendering
# ---------------------------------------------------------------------------

def graphql_type_to_ts(type_string: str, schema: Optional[GraphQLSchema]) -> str:
    """Map a printed GraphQL input type ("[ID!]!") to a TypeScript type."""
    if type_string.endswith("!"):
        return _nullable_ts(type_string[:-1], schema, nullable=False)
    return _nullable_ts(type_string, schema, nullable=True)


def _nullable_ts(type_string: str, schema, nullable: bool) -> str:
    if type_string.startswith("[") and type_string.endswith("]"):
        ts_type = f"Array<{graphql_type_to_ts(type_string[1:-1], schema)}>"
    else:
        ts_type = _named_ts(type_string, schema)
    return f"{ts_type} | null" if nullable else ts_type


def _named_ts(name: str, schema) -> str:
    if name in SCALAR_TS_TYPES:
        return SCALAR_TS_TYPES[name]

    named_type = schema.get_type(name) if schema is not None else None
    if isinstance(named_type, GraphQLEnumType):
        return " | ".join(f'"{value}"' for value in named_type.values)
    if isinstance(named_type, GraphQLInputObjectType):
        return "Record<string, unknown>"
    if isinstance(named_type, GraphQLScalarType):
        return "unknown"
    return "any"


def render_type_definitions(
    persisted: List[PersistedFunction], schema: Optional[GraphQLSchema]
) -> str:
    lines = [
        GENERATED_HEADER,
        "/* eslint-disable */",
        "",
        "export type NetlifyGraphFunctionOptions = {",
        "  /** The accessToken to use for the request */",
        "  accessToken?: string;",
        "  /** The siteId to use for the request */",
        "  siteId?: string;",
        "};",
        "",
        "export type GraphQLError = {",
        "  path: Array<string | number>;",
        "  message: string;",
        "  extensions: Record<string, unknown>;",
        "};",
        "",
    ]

    for entry in persisted:
        function = entry.function
        input_type = f"{function.operation_name}Input"
        lines.append(f"export type {input_type} = {{")
        for variable_name, variable_type in function.variables:
            optional = "" if variable_type.endswith("!") else "?"
            ts_type = graphql_type_to_ts(variable_type, schema)
            lines.append(f"  {variable_name}{optional}: {ts_type};")
        lines.append("};")
        lines.append("")
        if function.description:
            lines.append("/**")
            lines.extend(f" * {line}".rstrip() for line in _comment_lines(function.description))
            lines.append(" */")
        lines.append(
            f"export function {entry.client_function_name}("
            f"variables: {input_type}, options?: NetlifyGraphFunctionOptions"
            f"): Promise<{{ data: any; errors?: Array<GraphQLError> }}>;"
        )
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Client rendering
# ---------------------------------------------------------------------------

def render_client_source(
    config: NetlifyGraphConfig,
    persisted: List[PersistedFunction],
    site_id: str,
    client_url: str = DEFAULT_SETTINGS["NETLIFY_GRAPH_CLIENT_URL"],
) -> str:
    esm = config.module_type == "esm"
    export_prefix = "export const " if esm else "const "

    if config.runtime_target_env == "browser":
        site_id_line = f"const defaultSiteId = {json.dumps(site_id)};"
    else:
        site_id_line = "const defaultSiteId = process.env.SITE_ID;"

    lines = [
        GENERATED_HEADER,
        "/* eslint-disable */",
        "",
        site_id_line,
        "",
        "const fetchNetlifyGraph = async function fetchNetlifyGraph(input) {",
        "  const siteId = input.siteId || defaultSiteId;",
        f"  const url = `{client_url}?app_id=${{siteId}}`;",
        '  const headers = { "Content-Type": "application/json" };',
        "  if (input.accessToken) {",
        "    headers.Authorization = `Bearer ${input.accessToken}`;",
        "  }",
        "",
        "  const response = await fetch(url, {",
        '    method: "POST",',
        "    headers,",
        "    body: JSON.stringify({",
        "      doc_id: input.docId,",
        "      variables: input.variables || {},",
        "      operationName: input.operationName,",
        "    }),",
        "  });",
        "",
        "  return response.json();",
        "};",
        "",
    ]

    for entry in persisted:
        function = entry.function
        if function.description:
            lines.append("/**")
            lines.extend(f" * {line}".rstrip() for line in _comment_lines(function.description))
            lines.append(" */")
        lines.extend([
            f"{export_prefix}{entry.client_function_name} = (variables, options) => {{",
            "  return fetchNetlifyGraph({",
            f"    docId: {json.dumps(entry.persisted_query_id)},",
            f"    operationName: {json.dumps(function.operation_name)},",
            "    variables,",
            "    accessToken: options && options.accessToken,",
            "    siteId: options && options.siteId,",
            "  });",
            "};",
            "",
        ])

    names = ", ".join(entry.client_function_name for entry in persisted)
    lines.append(f"const functions = {{ {names} }};" if names else "const functions = {};")
    lines.append("")
    if esm:
        lines.append("export default functions;")
    else:
        lines.append("module.exports = functions;")
    lines.append("")

    return "\n".join(lines)


def load_custom_generator(path: str) -> Callable:
    """Load the generate() function from a user-provided Python file."""
    spec = importlib.util.spec_from_file_location("netlify_graph_custom_generator", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load custom generator from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    if not hasattr(module, "generate"):
        raise ImportError(f"Custom generator {path} does not define generate()")
    return module.generate


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def generate_persisted_functions_source(
    netlify_graph_config: NetlifyGraphConfig,
    netlify_token: str,
    site_id: str,
    schema: GraphQLSchema,
    operations_doc: str,
    functions: Dict[str, ExtractedFunction],
    fragments: Dict[str, ExtractedFragment],
    schema_id: str,
    client: NetlifyGraphClient,
    debug: bool = False,
) -> GeneratedSource:
    """Persist every function and render the client and type definition sources."""
    persisted: List[PersistedFunction] = []
    failed: List[FailedPersistedFunction] = []

    for function in functions.values():
        if function.kind not in CLIENT_FUNCTION_PREFIXES:
            if debug:
                print(f"  Skipping {function.kind} {function.operation_name}")
            continue

        try:
            document = build_persistable_document(function, fragments)
            persisted_id = client.create_persisted_query(
                site_id=site_id,
                access_token=netlify_token,
                query=document,
                tags=["netlify-graph-build", f"schema:{schema_id}"],
                description=function.description,
            )
        except Exception as e:
            print(f"  Failed to persist {function.operation_name}: {e}")
            failed.append(FailedPersistedFunction(attempted_function=function, error=str(e)))
            continue

        if debug:
            print(f"  Persisted {function.operation_name} as {persisted_id}")
        persisted.append(PersistedFunction(
            function=function,
            persisted_query_id=persisted_id,
            client_function_name=client_function_name(function),
        ))

    if netlify_graph_config.custom_generator_file:
        generator_path = netlify_graph_config.resolve(netlify_graph_config.custom_generator_file)
        generate = load_custom_generator(generator_path)
        client_source, type_definitions_source = generate(
            netlify_graph_config, persisted, fragments, schema, operations_doc
        )
    else:
        client_source = render_client_source(netlify_graph_config, persisted, site_id)
        type_definitions_source = render_type_definitions(persisted, schema)

    return GeneratedSource(
        client_source=client_source,
        type_definitions_source=type_definitions_source,
        function_definitions=persisted,
        failed_persisted_functions=failed,
    )


def generate_persisted_functions_file(
    netlify_graph_config: NetlifyGraphConfig,
    netlify_token: str,
    site_id: str,
    schema: GraphQLSchema,
    operations_doc: str,
    functions: Dict[str, ExtractedFunction],
    fragments: Dict[str, ExtractedFragment],
    schema_id: str,
    client: NetlifyGraphClient,
    logger: Optional[Callable[[str], None]] = print,
    debug: bool = False,
) -> Tuple[List[FailedPersistedFunction], List[PersistedFunction]]:
    """Generate the client and type definitions and write them to disk.

    Returns:
        (failed_persisted_functions, function_definitions)
    """
    generated = generate_persisted_functions_source(
        netlify_graph_config,
        netlify_token,
        site_id,
        schema,
        operations_doc,
        functions,
        fragments,
        schema_id,
        client,
        debug,
    )

    ensure_netlify_graph_path(netlify_graph_config)

    implementation_path = netlify_graph_config.resolve(
        netlify_graph_config.netlify_graph_implementation_filename
    )
    type_definitions_path = netlify_graph_config.resolve(
        netlify_graph_config.netlify_graph_type_definitions_filename
    )

    written = []
    for file_path, source in (
        (implementation_path, generated.client_source),
        (type_definitions_path, generated.type_definitions_source),
    ):
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(source)
        relative_path = os.path.relpath(file_path, os.getcwd())
        written.append((relative_path, source))
        if logger:
            logger(f"Wrote {relative_path}")

    if logger:
        for relative_path, source in written:
            logger(f"{relative_path}:\n{source}")

    return generated.failed_persisted_functions, generated.function_definitions
