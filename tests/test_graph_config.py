"""Tests for netlify_graph_build.graph_config."""

import os

import pytest

from netlify_graph_build.graph_config import (
    DEFAULT_FRAMEWORK_LOOKUP,
    NetlifyGraphConfig,
    filter_relative_path_items,
    get_netlify_graph_config,
    get_site_root,
    split_path,
)


PATH_FIELDS = [
    "functions_path",
    "netlify_graph_path",
    "netlify_graph_implementation_filename",
    "netlify_graph_type_definitions_filename",
    "graphql_operations_source_filename",
    "graphql_operations_source_directory",
    "graphql_schema_filename",
    "graphql_config_json_filename",
    "netlify_graph_require_path",
]


def _frameworks(framework_id):
    return [{"id": framework_id, "name": framework_id}] if framework_id else []


def _resolve(tmp_path, graph=None, framework_id=None, **config):
    config = dict(config)
    config["graph"] = graph or {}
    return get_netlify_graph_config(
        config, project_dir=str(tmp_path), frameworks=_frameworks(framework_id)
    )


@pytest.fixture
def site_root(tmp_path):
    return get_site_root(str(tmp_path))


def test_filter_relative_path_items():
    assert filter_relative_path_items(["", "a", "", "b"]) == ["a", "b"]


def test_split_path_relative():
    assert split_path(os.path.join("lib", "netlifyGraph")) == ["lib", "netlifyGraph"]


def test_split_path_absolute_keeps_root():
    assert split_path(os.sep + os.path.join("srv", "site")) == [os.sep, "srv", "site"]


def test_split_path_drops_empty_segments():
    assert split_path("lib" + os.sep + os.sep + "graph" + os.sep) == ["lib", "graph"]


def test_split_path_accepts_list():
    assert split_path(["lib", "", "graph"]) == ["lib", "graph"]


def test_resolve_rebuilds_absolute_path():
    assert NetlifyGraphConfig.resolve([os.sep, "srv", "site"]) == os.path.abspath(
        os.sep + os.path.join("srv", "site")
    )


def test_site_root_is_absolute(tmp_path, site_root):
    assert site_root[0] == os.sep
    assert os.path.join(*site_root) == os.path.abspath(str(tmp_path))


@pytest.mark.parametrize("framework_id", ["next", "remix", "gatsby", None])
def test_framework_defaults_have_no_empty_segments(tmp_path, framework_id):
    graph_config = _resolve(tmp_path, framework_id=framework_id)
    for name in PATH_FIELDS:
        segments = getattr(graph_config, name)
        assert segments, name
        assert "" not in segments, name


@pytest.mark.parametrize("framework_id", ["next", "remix", "gatsby", None])
@pytest.mark.parametrize("extension", ["js", "ts"])
def test_generated_filenames_live_in_graph_path(tmp_path, framework_id, extension):
    graph_config = _resolve(tmp_path, graph={"extension": extension}, framework_id=framework_id)
    graph_path = graph_config.netlify_graph_path
    assert graph_config.netlify_graph_implementation_filename == [*graph_path, f"index.{extension}"]
    assert graph_config.netlify_graph_type_definitions_filename == [*graph_path, "index.d.ts"]
    assert graph_config.extension == extension


def test_generic_defaults(tmp_path, site_root):
    graph_config = _resolve(tmp_path)
    assert graph_config.framework == "default"
    assert graph_config.functions_path == [*site_root, "netlify", "functions"]
    assert graph_config.netlify_graph_path == [*site_root, "netlify", "functions", "netlifyGraph"]
    assert graph_config.webhook_base_path == "/.netlify/functions"
    assert graph_config.netlify_graph_require_path == [".", "netlifyGraph"]
    assert graph_config.module_type == "esm"
    assert graph_config.runtime_target_env == "node"
    assert graph_config.graphql_schema_filename[-1] == "netlifyGraphSchema.graphql"
    assert graph_config.graphql_operations_source_directory[-1] == "operations"
    assert graph_config.graphql_operations_source_filename[-1] == (
        "netlifyGraphOperationsLibrary.graphql"
    )


def test_generic_uses_configured_functions_directory(tmp_path, site_root):
    graph_config = _resolve(tmp_path, functionsDirectory="functions")
    assert graph_config.functions_path == [*site_root, "functions"]
    assert graph_config.netlify_graph_path == [*site_root, "functions", "netlifyGraph"]


def test_generic_absolute_functions_directory(tmp_path):
    absolute = os.sep + os.path.join("opt", "build", "repo", "functions")
    graph_config = _resolve(tmp_path, functionsDirectory=absolute)
    assert graph_config.functions_path == [os.sep, "opt", "build", "repo", "functions"]


def test_nextjs_defaults(tmp_path, site_root):
    graph_config = _resolve(tmp_path, framework_id="next")
    assert graph_config.framework == "next"
    assert graph_config.functions_path == [*site_root, "pages", "api"]
    assert graph_config.netlify_graph_path == [*site_root, "lib", "netlifyGraph"]
    assert graph_config.webhook_base_path == "/api"
    assert graph_config.netlify_graph_require_path == ["..", "..", "lib", "netlifyGraph"]


def test_remix_defaults(tmp_path, site_root):
    graph_config = _resolve(tmp_path, framework_id="remix")
    assert graph_config.framework == "remix"
    assert graph_config.webhook_base_path == "/webhooks"
    assert graph_config.netlify_graph_path == [*site_root, "netlify", "functions", "netlifyGraph"]
    assert graph_config.module_type == "esm"


def test_unknown_framework_uses_generic_factory(tmp_path, site_root):
    graph_config = _resolve(tmp_path, framework_id="gatsby")
    assert graph_config.framework == "gatsby"
    assert graph_config.webhook_base_path == "/.netlify/functions"
    assert graph_config.functions_path == [*site_root, "netlify", "functions"]


def test_framework_lookup_keys():
    assert set(DEFAULT_FRAMEWORK_LOOKUP) == {"next", "remix", "default"}


@pytest.mark.parametrize("framework_id", ["next", "remix", None])
@pytest.mark.parametrize("key,attr", [
    ("netlifyGraphPath", "netlify_graph_path"),
    ("netlifyGraphImplementationFilename", "netlify_graph_implementation_filename"),
    ("netlifyGraphTypeDefinitionsFilename", "netlify_graph_type_definitions_filename"),
    ("graphQLOperationsSourceFilename", "graphql_operations_source_filename"),
    ("graphQLOperationsSourceDirectory", "graphql_operations_source_directory"),
    ("graphQLSchemaFilename", "graphql_schema_filename"),
    ("graphQLConfigJsonFilename", "graphql_config_json_filename"),
    ("netlifyGraphRequirePath", "netlify_graph_require_path"),
    ("customGeneratorFile", "custom_generator_file"),
])
def test_user_path_overrides_win(tmp_path, framework_id, key, attr):
    value = os.path.join("custom", "dir", "file")
    graph_config = _resolve(tmp_path, graph={key: value}, framework_id=framework_id)
    assert getattr(graph_config, attr) == ["custom", "dir", "file"]


@pytest.mark.parametrize("framework_id", ["next", "remix", None])
def test_user_functions_path_is_anchored_at_site_root(tmp_path, site_root, framework_id):
    graph_config = _resolve(
        tmp_path,
        graph={"functionsPath": os.path.join("src", "functions")},
        framework_id=framework_id,
    )
    assert graph_config.functions_path == [*site_root, "src", "functions"]


@pytest.mark.parametrize("framework_id", ["next", "remix", None])
@pytest.mark.parametrize("key,attr,value", [
    ("webhookBasePath", "webhook_base_path", "/hooks"),
    ("moduleType", "module_type", "commonjs"),
    ("language", "language", "typescript"),
    ("runtimeTargetEnv", "runtime_target_env", "browser"),
])
def test_user_option_overrides_win(tmp_path, framework_id, key, attr, value):
    graph_config = _resolve(tmp_path, graph={key: value}, framework_id=framework_id)
    assert getattr(graph_config, attr) == value


def test_user_framework_id_is_reported_but_detected_defaults_apply(tmp_path, site_root):
    graph_config = _resolve(tmp_path, graph={"frameworkId": "next"}, framework_id="remix")
    assert graph_config.framework == "next"
    assert graph_config.webhook_base_path == "/webhooks"
    assert graph_config.functions_path == [*site_root, "netlify", "functions"]


def test_user_framework_id_without_detection_keeps_generic_defaults(tmp_path):
    graph_config = _resolve(tmp_path, graph={"frameworkId": "next"})
    assert graph_config.framework == "next"
    assert graph_config.webhook_base_path == "/.netlify/functions"


@pytest.mark.parametrize("framework_id", ["next", "remix", None])
def test_user_graph_path_leaves_other_settings_at_defaults(tmp_path, framework_id):
    defaults = _resolve(tmp_path, framework_id=framework_id)
    graph_config = _resolve(
        tmp_path,
        graph={"netlifyGraphPath": os.path.join("src", "graph")},
        framework_id=framework_id,
    )
    assert graph_config.netlify_graph_path == ["src", "graph"]
    for attr in PATH_FIELDS:
        if attr != "netlify_graph_path":
            assert getattr(graph_config, attr) == getattr(defaults, attr), attr


def test_language_autodetected_from_tsconfig(tmp_path):
    assert _resolve(tmp_path).language == "javascript"
    (tmp_path / "tsconfig.json").write_text("{}")
    assert _resolve(tmp_path).language == "typescript"


def test_user_language_overrides_tsconfig(tmp_path):
    (tmp_path / "tsconfig.json").write_text("{}")
    assert _resolve(tmp_path, graph={"language": "javascript"}).language == "javascript"


def test_unknown_user_keys_kept_in_extra(tmp_path):
    graph_config = _resolve(tmp_path, graph={"someFutureOption": True, "moduleType": "esm"})
    assert graph_config.extra == {"someFutureOption": True}


def test_frameworks_detected_when_not_given(tmp_path):
    (tmp_path / "package.json").write_text('{"dependencies": {"next": "13.0.0"}}')
    graph_config = get_netlify_graph_config({}, project_dir=str(tmp_path))
    assert graph_config.framework == "next"
