"""Tests for netlify_graph_build.codegen."""

import os
from unittest.mock import MagicMock

import pytest
from graphql import build_schema, parse

from netlify_graph_build.codegen import (
    build_persistable_document,
    client_function_name,
    collect_fragment_dependencies,
    generate_persisted_functions_file,
    generate_persisted_functions_source,
    graphql_type_to_ts,
)
from netlify_graph_build.graph_client import GraphClientError
from netlify_graph_build.graph_config import get_netlify_graph_config
from netlify_graph_build.operations import extract_functions_from_operation_doc


SCHEMA = build_schema("""
enum Role { ADMIN MEMBER }
input NewUser { name: String }
scalar JSON
type User { id: ID! name: String role: Role }
type Query { user(id: ID!): User }
type Mutation { createUser(input: NewUser!, role: Role): User }
type Subscription { userCreated: User }
""")

OPERATIONS_DOC = """
query FindUser($id: ID!) @netlify(id: "1", doc: "Look up a user") {
  user(id: $id) { ...UserFields }
}

mutation CreateUser($input: NewUser!, $role: Role, $tags: [String!]) {
  createUser(input: $input, role: $role) { id }
}

subscription OnUserCreated {
  userCreated { id }
}

fragment UserFields on User { id ...UserName }

fragment UserName on User { name }
"""


@pytest.fixture
def extracted():
    return extract_functions_from_operation_doc(parse(OPERATIONS_DOC))


@pytest.fixture
def graph_config(tmp_path):
    return get_netlify_graph_config({}, project_dir=str(tmp_path), frameworks=[])


def _client(fail_for=()):
    client = MagicMock()

    def persist(site_id, access_token, query, tags, description=None):
        for name in fail_for:
            if name in query:
                raise GraphClientError(f"could not persist {name}")
        return f"doc-{len(query)}"

    client.create_persisted_query.side_effect = persist
    return client


def test_client_function_name(extracted):
    _, functions = extracted
    assert client_function_name(functions["FindUser"]) == "fetchFindUser"
    assert client_function_name(functions["CreateUser"]) == "executeCreateUser"


def test_collect_fragment_dependencies_follows_nested_spreads(extracted):
    fragments, _ = extracted
    resolved = collect_fragment_dependencies(["UserFields"], fragments)
    assert [f.name for f in resolved] == ["UserFields", "UserName"]


def test_collect_fragment_dependencies_unknown_fragment(extracted):
    fragments, _ = extracted
    with pytest.raises(KeyError):
        collect_fragment_dependencies(["Missing"], fragments)


def test_persistable_document_is_valid_graphql(extracted):
    fragments, functions = extracted
    document = build_persistable_document(functions["FindUser"], fragments)
    names = [d.name.value for d in parse(document).definitions]
    assert names == ["FindUser", "UserFields", "UserName"]


@pytest.mark.parametrize("type_string,expected", [
    ("ID!", "string"),
    ("Int", "number | null"),
    ("[String!]!", "Array<string>"),
    ("[Boolean]", "Array<boolean | null> | null"),
    ("Role!", '"ADMIN" | "MEMBER"'),
    ("NewUser!", "Record<string, unknown>"),
    ("JSON!", "unknown"),
    ("Unknown!", "any"),
])
def test_graphql_type_to_ts(type_string, expected):
    assert graphql_type_to_ts(type_string, SCHEMA) == expected


def test_generate_source_persists_queries_and_mutations(graph_config, extracted):
    fragments, functions = extracted
    client = _client()

    generated = generate_persisted_functions_source(
        graph_config, "tok", "site-1", SCHEMA, OPERATIONS_DOC,
        functions, fragments, "schema-1", client,
    )

    assert [d.function.operation_name for d in generated.function_definitions] == [
        "FindUser", "CreateUser",
    ]
    assert generated.failed_persisted_functions == []
    assert client.create_persisted_query.call_count == 2
    _, kwargs = client.create_persisted_query.call_args_list[0]
    assert kwargs["tags"] == ["netlify-graph-build", "schema:schema-1"]
    assert kwargs["description"] == "Look up a user"
    assert "fragment UserName" in kwargs["query"]

    first_id = generated.function_definitions[0].persisted_query_id
    assert f'docId: "{first_id}"' in generated.client_source
    assert "export const fetchFindUser" in generated.client_source
    assert "export default functions;" in generated.client_source
    assert "process.env.SITE_ID" in generated.client_source
    assert "OnUserCreated" not in generated.client_source

    types = generated.type_definitions_source
    assert "export type FindUserInput = {\n  id: string;\n};" in types
    assert '  role?: "ADMIN" | "MEMBER" | null;' in types
    assert "  tags?: Array<string> | null;" in types
    assert "export function executeCreateUser(" in types
    assert " * Look up a user" in types


def test_generate_source_records_failures_and_continues(graph_config, extracted):
    fragments, functions = extracted
    client = _client(fail_for=("FindUser",))

    generated = generate_persisted_functions_source(
        graph_config, "tok", "site-1", SCHEMA, OPERATIONS_DOC,
        functions, fragments, "schema-1", client,
    )

    assert [f.attempted_function.operation_name for f in generated.failed_persisted_functions] == [
        "FindUser",
    ]
    assert "could not persist FindUser" in generated.failed_persisted_functions[0].error
    assert [d.function.operation_name for d in generated.function_definitions] == ["CreateUser"]
    assert "fetchFindUser" not in generated.client_source


def test_commonjs_browser_client(tmp_path, extracted):
    fragments, functions = extracted
    graph_config = get_netlify_graph_config(
        {"graph": {"moduleType": "commonjs", "runtimeTargetEnv": "browser"}},
        project_dir=str(tmp_path),
        frameworks=[],
    )

    generated = generate_persisted_functions_source(
        graph_config, "tok", "site-1", SCHEMA, OPERATIONS_DOC,
        functions, fragments, "schema-1", _client(),
    )

    assert "module.exports = functions;" in generated.client_source
    assert "export const" not in generated.client_source
    assert 'const defaultSiteId = "site-1";' in generated.client_source


def test_descriptions_and_ids_are_escaped(graph_config):
    document = parse(
        'query Tricky @netlify(id: "1", doc: "Ends */ early\\nsays \\"hi\\"") { user(id: "1") { id } }'
    )
    fragments, functions = extract_functions_from_operation_doc(document)
    client = MagicMock()
    client.create_persisted_query.return_value = 'doc"1'

    generated = generate_persisted_functions_source(
        graph_config, "tok", 'site"1', SCHEMA, "",
        functions, fragments, "schema-1", client,
    )

    for source in (generated.client_source, generated.type_definitions_source):
        lines = source.splitlines()
        assert " * Ends * / early" in lines
        assert ' * says "hi"' in lines
        assert "*/ early" not in source
    assert 'docId: "doc\\"1",' in generated.client_source


def test_custom_generator_file(tmp_path, extracted):
    generator = tmp_path / "my_generator.py"
    generator.write_text(
        "def generate(config, functions, fragments, schema, operations_doc):\n"
        "    names = ','.join(f.client_function_name for f in functions)\n"
        "    return 'client:' + names, 'types:' + config.module_type\n"
    )
    graph_config = get_netlify_graph_config(
        {"graph": {"customGeneratorFile": str(generator)}},
        project_dir=str(tmp_path),
        frameworks=[],
    )
    fragments, functions = extracted

    generated = generate_persisted_functions_source(
        graph_config, "tok", "site-1", SCHEMA, OPERATIONS_DOC,
        functions, fragments, "schema-1", _client(),
    )

    assert generated.client_source == "client:fetchFindUser,executeCreateUser"
    assert generated.type_definitions_source == "types:esm"


def test_generate_file_writes_outputs(graph_config, extracted):
    fragments, functions = extracted
    logger = MagicMock()

    failed, definitions = generate_persisted_functions_file(
        graph_config, "tok", "site-1", SCHEMA, OPERATIONS_DOC,
        functions, fragments, "schema-1", _client(), logger=logger,
    )

    assert failed == []
    assert len(definitions) == 2

    implementation = graph_config.resolve(graph_config.netlify_graph_implementation_filename)
    type_definitions = graph_config.resolve(graph_config.netlify_graph_type_definitions_filename)
    assert os.path.basename(implementation) == "index.js"
    with open(implementation) as f:
        assert "fetchFindUser" in f.read()
    with open(type_definitions) as f:
        assert "FindUserInput" in f.read()

    messages = [call.args[0] for call in logger.call_args_list]
    assert messages[0].startswith("Wrote ")
    assert messages[0].endswith("index.js")
    assert messages[1].endswith("index.d.ts")
    assert len(messages) == 4
