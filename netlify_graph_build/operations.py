"""
Operations - Read the locally authored GraphQL schema and operation files.

Netlify Graph keeps its source files inside the configured Netlify Graph
directory:

  netlifyGraphSchema.graphql               The site's GraphQL schema (SDL)
  operations/*.graphql                     One or more operation files
  netlifyGraphOperationsLibrary.graphql    Legacy single-file library

All operation files are parsed with graphql-core and their definitions are
concatenated, in filename order, into one operations document.

Each named operation may carry a @netlify directive:

    query FindUser($id: ID!) @netlify(id: "b3c2...", doc: "Look up a user") {
      user(id: $id) { ...UserFields }
    }

extract_functions_from_operation_doc() turns those operations into
ExtractedFunction records for code generation.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    GraphQLError,
    OperationDefinitionNode,
    Visitor,
    parse,
    print_ast,
    visit,
)

from .graph_config import NetlifyGraphConfig


OPERATION_FILE_PATTERN = re.compile(r".*\.graphql$", re.IGNORECASE)


class OperationsError(Exception):
    """Raised when an operation file cannot be read or parsed."""


@dataclass
class OperationFile:
    name: str
    path: str
    content: str
    parsed_operation: DocumentNode


@dataclass
class ExtractedFunction:
    """A named operation that will become a persisted function."""

    id: Optional[str]
    operation_name: str
    kind: str
    description: Optional[str]
    operation_string: str
    fragment_names: List[str] = field(default_factory=list)
    variables: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class ExtractedFragment:
    name: str
    fragment_string: str
    fragment_names: List[str] = field(default_factory=list)


def ensure_netlify_graph_path(netlify_graph_config: NetlifyGraphConfig) -> str:
    """Create the Netlify Graph directory if needed and return its path."""
    full_path = netlify_graph_config.resolve(netlify_graph_config.netlify_graph_path)
    os.makedirs(full_path, exist_ok=True)
    return full_path


def read_graphql_schema_file(netlify_graph_config: NetlifyGraphConfig) -> str:
    """Return the SDL text of the site's GraphQL schema file.

    Raises:
        FileNotFoundError: If the schema file does not exist.
    """
    ensure_netlify_graph_path(netlify_graph_config)
    schema_path = netlify_graph_config.resolve(netlify_graph_config.graphql_schema_filename)
    with open(schema_path, "r", encoding="utf-8") as f:
        return f.read()


def read_legacy_operations_source_file(netlify_graph_config: NetlifyGraphConfig) -> Optional[str]:
    """Return the unparsed legacy single-file operations library, or None if absent."""
    ensure_netlify_graph_path(netlify_graph_config)

    full_filename = netlify_graph_config.resolve(
        netlify_graph_config.graphql_operations_source_filename
    )
    if not os.path.exists(full_filename):
        return None

    with open(full_filename, "r", encoding="utf-8") as f:
        return f.read()


def _has_definitions(content: str) -> bool:
    """False for files holding only whitespace and comments."""
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            return True
    return False


def read_operation_files(
    netlify_graph_config: NetlifyGraphConfig, debug: bool = False
) -> List[OperationFile]:
    """Read and parse every .graphql file in the operations directory.

    Files are returned sorted by filename. A missing directory yields an
    empty list.

    Raises:
        OperationsError: If a file is not valid GraphQL.
    """
    ensure_netlify_graph_path(netlify_graph_config)

    operations_path = netlify_graph_config.resolve(
        netlify_graph_config.graphql_operations_source_directory
    )
    if not os.path.isdir(operations_path):
        if debug:
            print(f"  No operations directory at {operations_path}")
        return []

    filenames = sorted(os.listdir(operations_path))
    if debug:
        print(f"  Operations path: {operations_path}")
        print(f"  Filenames: {filenames}")

    operation_files = []
    for filename in filenames:
        if not OPERATION_FILE_PATTERN.match(filename):
            continue

        file_path = os.path.join(operations_path, filename)
        if not os.path.isfile(file_path):
            continue

        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()

        if _has_definitions(content):
            try:
                parsed = parse(content)
            except GraphQLError as e:
                raise OperationsError(f"Could not parse {filename}: {e.message}") from e
        else:
            parsed = DocumentNode(definitions=())

        operation_files.append(OperationFile(
            name=filename,
            path=file_path,
            content=content,
            parsed_operation=parsed,
        ))

    return operation_files


def combine_operation_files(operation_files: List[OperationFile]) -> DocumentNode:
    """Concatenate the definitions of every file into one document, order preserved."""
    definitions = []
    for operation_file in operation_files:
        definitions.extend(operation_file.parsed_operation.definitions)
    return DocumentNode(definitions=tuple(definitions))


def read_graphql_operations_source_files(
    netlify_graph_config: NetlifyGraphConfig, debug: bool = False
) -> str:
    """Return the printed operations document assembled from all operation files.

    An empty string means no operations were found.
    """
    operation_files = read_operation_files(netlify_graph_config, debug)
    parsed_doc = combine_operation_files(operation_files)
    source = print_ast(parsed_doc)

    if debug:
        print(f"  GraphQL source:\n{source}")

    return source


class _FragmentSpreadCollector(Visitor):
    """Collects the names of fragments spread inside a definition."""

    def __init__(self):
        super().__init__()
        self.names: List[str] = []

    def enter_fragment_spread(self, node, *_args):
        name = node.name.value
        if name not in self.names:
            self.names.append(name)


def _fragment_spreads(node) -> List[str]:
    collector = _FragmentSpreadCollector()
    visit(node, collector)
    return collector.names


def _netlify_directive_arguments(node: OperationDefinitionNode) -> Dict[str, str]:
    for directive in node.directives or ():
        if directive.name.value == "netlify":
            return {
                argument.name.value: getattr(argument.value, "value", None)
                for argument in directive.arguments or ()
            }
    return {}


def extract_functions_from_operation_doc(
    document: DocumentNode,
) -> Tuple[Dict[str, ExtractedFragment], Dict[str, ExtractedFunction]]:
    """Split a parsed operations document into fragments and functions.

    Anonymous operations are skipped since a persisted function needs a name.

    Returns:
        (fragments, functions), each keyed by name.

    Raises:
        OperationsError: If two operations or two fragments share a name.
    """
    fragments: Dict[str, ExtractedFragment] = {}
    functions: Dict[str, ExtractedFunction] = {}

    for definition in document.definitions:
        if isinstance(definition, FragmentDefinitionNode):
            name = definition.name.value
            if name in fragments:
                raise OperationsError(f"Duplicate fragment name '{name}'")
            fragments[name] = ExtractedFragment(
                name=name,
                fragment_string=print_ast(definition),
                fragment_names=_fragment_spreads(definition.selection_set),
            )
        elif isinstance(definition, OperationDefinitionNode):
            if definition.name is None:
                continue
            name = definition.name.value
            if name in functions:
                raise OperationsError(f"Duplicate operation name '{name}'")
            directive_args = _netlify_directive_arguments(definition)
            functions[name] = ExtractedFunction(
                id=directive_args.get("id"),
                operation_name=name,
                kind=definition.operation.value,
                description=directive_args.get("doc"),
                operation_string=print_ast(definition),
                fragment_names=_fragment_spreads(definition.selection_set),
                variables=[
                    (variable.variable.name.value, print_ast(variable.type))
                    for variable in definition.variable_definitions or ()
                ],
            )

    return fragments, functions
