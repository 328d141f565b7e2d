"""Tests for import resolution into the file graph."""

import pytest

from codegraph_core.languages import Language, classify
from codegraph_core.models import ImportInfo, SourceFile
from codegraph_core.resolver import (
    EDGE_IMPORT,
    EDGE_MODULE_REFERENCE,
    EDGE_NAMESPACE,
    EDGE_PACKAGE_REFERENCE,
    EDGE_REFERENCE,
    DependencyResolver,
    module_key,
    namespace_key,
)


def _resolve(extractor, files):
    results = [extractor.extract(f, classify(f.path)) for f in files if classify(f.path) is not None]
    return DependencyResolver().resolve(results)


def _edges(graph):
    return {(e.source, e.target): e.kind for e in graph.edges}


def test_go_imports_resolve_by_path_suffix(extractor, go_files):
    """Test Go imports resolve by path suffix."""
    outcome = _resolve(extractor, go_files)

    assert outcome.graph.node_ids() == ["a.go", "b.go", "c.go"]
    assert _edges(outcome.graph) == {("a.go", "b.go"): EDGE_IMPORT, ("c.go", "a.go"): EDGE_IMPORT}
    assert outcome.unresolved == []


def test_mixed_project(extractor, mixed_project):
    """Test resolving a polyglot project."""
    outcome = _resolve(extractor, mixed_project)
    user = "src/main/java/com/example/model/User.java"
    service = "src/main/java/com/example/service/UserService.java"

    assert _edges(outcome.graph) == {
        (service, user): EDGE_IMPORT,
        ("web/src/app.ts", "web/src/utils/helper.ts"): EDGE_IMPORT,
        ("native/util.c", "native/util.h"): EDGE_IMPORT,
        ("tools/build.py", "tools/config.py"): EDGE_MODULE_REFERENCE,
    }
    assert outcome.unresolved_labels() == [
        f"{service}: java.util.List",
        "web/src/app.ts: react",
        "tools/build.py: os",
        "tools/build.py: tools",
    ]
    assert "logo.png" not in outcome.graph.node_ids()
    assert outcome.graph.has_node("README.md")


def test_sample_project(extractor, sample_project_path):
    """Test resolving the sample project."""
    files = [
        SourceFile(p.name, p.read_text(encoding="utf-8"))
        for p in sorted(sample_project_path.glob("*.py"))
    ]
    outcome = _resolve(extractor, files)

    assert set(_edges(outcome.graph)) == {
        ("main.py", "models.py"),
        ("main.py", "processor.py"),
        ("main.py", "utils.py"),
        ("processor.py", "models.py"),
        ("processor.py", "utils.py"),
    }
    assert outcome.unresolved_labels() == [
        "models.py: dataclasses",
        "models.py: typing",
        "processor.py: typing",
    ]


def test_namespace_tier_prefers_matching_stem(extractor):
    """Test the namespace tier prefers a file named after the import."""
    files = [
        SourceFile("src/Http/Controller.php", "<?php\nnamespace App\\Http;\n\nuse App\\Models\\User;\n\nclass Controller {}\n"),
        SourceFile("src/Models/Account.php", "<?php\nnamespace App\\Models;\n\nclass Account {}\n"),
        SourceFile("src/Models/User.php", "<?php\nnamespace App\\Models;\n\nclass User {}\n"),
    ]
    outcome = _resolve(extractor, files)

    assert _edges(outcome.graph) == {("src/Http/Controller.php", "src/Models/User.php"): EDGE_NAMESPACE}


def test_namespace_tier_falls_back_to_first_in_order(extractor):
    """Test the namespace tier picks the first file otherwise."""
    files = [
        SourceFile("app/Report.java", "package com.example.app;\n\nimport com.example.model.*;\n\npublic class Report {}\n"),
        SourceFile("model/Order.java", "package com.example.model;\n\npublic class Order {}\n"),
        SourceFile("model/User.java", "package com.example.model;\n\npublic class User {}\n"),
    ]
    outcome = _resolve(extractor, files)

    assert _edges(outcome.graph) == {("app/Report.java", "model/Order.java"): EDGE_NAMESPACE}


def test_reference_tier_stays_inside_namespace(extractor):
    """Test textual references only link files of one namespace."""
    files = [
        SourceFile("other/x.go", "package other\n\n// geometry lives here too\nfunc X() {}\n"),
        SourceFile("shapes/area.go", 'package shapes\n\nimport "lib/geometry"\n\nfunc Area() {}\n'),
        SourceFile("shapes/helpers.go", "package shapes\n\n// wraps geometry helpers\nfunc Help() {}\n"),
    ]
    outcome = _resolve(extractor, files)

    assert _edges(outcome.graph) == {("shapes/area.go", "shapes/helpers.go"): EDGE_REFERENCE}
    assert outcome.unresolved == []


def test_same_package_type_reference_without_import(extractor):
    """Test same-package type references link files."""
    files = [
        SourceFile("com/acme/Order.java", "package com.acme;\n\npublic class Order {\n    private Customer customer;\n}\n"),
        SourceFile("com/acme/Customer.java", "package com.acme;\n\npublic class Customer {\n}\n"),
    ]
    outcome = _resolve(extractor, files)

    assert len(outcome.graph.edges) == 1
    edge = outcome.graph.edges[0]
    assert (edge.source, edge.target) == ("com/acme/Order.java", "com/acme/Customer.java")
    assert edge.kind == EDGE_PACKAGE_REFERENCE
    assert edge.weight == 2


def test_lone_file_never_links_to_itself(extractor):
    """Test a file never links to itself."""
    outcome = _resolve(extractor, [SourceFile("a.go", 'package a\n\nimport "x/a"\n')])

    assert outcome.graph.edges == []
    assert outcome.unresolved_labels() == ["a.go: x/a"]


def test_repeated_imports_bump_weight(extractor):
    """Test repeated imports raise the edge weight."""
    files = [
        SourceFile("main.py", "import utils\nfrom utils import helper\n"),
        SourceFile("utils.py", "def helper():\n    return 1\n"),
    ]
    outcome = _resolve(extractor, files)

    assert len(outcome.graph.edges) == 1
    assert outcome.graph.edges[0].weight == 2


def test_paths_are_normalized(extractor):
    """Test node paths are normalized."""
    files = [
        SourceFile("./src/app.ts", "import { util } from './lib/util';\n"),
        SourceFile("src\\lib\\util.ts", "export const util = () => 1;\n"),
    ]
    outcome = _resolve(extractor, files)

    assert outcome.graph.node_ids() == ["src/app.ts", "src/lib/util.ts"]
    assert set(_edges(outcome.graph)) == {("src/app.ts", "src/lib/util.ts")}


def test_header_include_prefers_exact_file(extractor):
    """Test an include of util.h targets util.h even when util.c comes first."""
    files = [
        SourceFile("src/main.c", '#include "util.h"\n\nint main(void) {\n    return 0;\n}\n'),
        SourceFile("src/util.c", '#include "util.h"\n\nint add(int a, int b) {\n    return a + b;\n}\n'),
        SourceFile("src/util.h", "int add(int a, int b);\n"),
    ]
    outcome = _resolve(extractor, files)

    assert _edges(outcome.graph) == {
        ("src/main.c", "src/util.h"): EDGE_IMPORT,
        ("src/util.c", "src/util.h"): EDGE_IMPORT,
    }


def test_json_import_prefers_exact_file(extractor):
    """Test importing data.json does not resolve to a data.js sibling."""
    files = [
        SourceFile("web/app.js", "import data from './data.json';\n"),
        SourceFile("web/data.js", "export const data = 1;\n"),
        SourceFile("web/data.json", '{"a": 1}\n'),
    ]
    outcome = _resolve(extractor, files)

    assert _edges(outcome.graph) == {("web/app.js", "web/data.json"): EDGE_IMPORT}


def test_extensionless_import_still_resolves(extractor):
    """Test an import without extension falls back to the extension-less key."""
    files = [
        SourceFile("web/app.js", "import { data } from './data';\n"),
        SourceFile("web/data.js", "export const data = 1;\n"),
    ]
    outcome = _resolve(extractor, files)

    assert _edges(outcome.graph) == {("web/app.js", "web/data.js"): EDGE_IMPORT}


def test_edges_reference_existing_nodes(extractor, mixed_project):
    """Test every edge joins two existing nodes."""
    graph = _resolve(extractor, mixed_project).graph
    ids = set(graph.node_ids())

    for edge in graph.edges:
        assert edge.source in ids and edge.target in ids
        assert edge.source != edge.target


def test_resolution_is_deterministic(extractor, mixed_project):
    """Test resolution is deterministic."""
    first = _resolve(extractor, mixed_project).graph.to_dict()
    second = _resolve(extractor, mixed_project).graph.to_dict()

    assert first == second


@pytest.mark.parametrize(
    "module, language, expected",
    [
        (".models", Language.PYTHON, "models"),
        ("..pkg.mod", Language.PYTHON, "pkg/mod"),
        ("crate::graph::Node", Language.RUST, "graph/Node"),
        ("./utils/helper.ts", Language.TYPESCRIPT, "utils/helper"),
        ("@/components/Button", Language.TYPESCRIPT, "components/Button"),
        ("java.util.*", Language.JAVA, "java/util"),
        ("<stdio.h>", Language.C, "stdio"),
        ("example.com/pkg/b", Language.GO, "example.com/pkg/b"),
    ],
)
def test_module_key(module, language, expected):
    """Test module path normalization."""
    assert module_key(ImportInfo(module), language) == expected


def test_namespace_key():
    """Test namespace normalization."""
    assert namespace_key("App\\Models") == "App.Models"
    assert namespace_key("std::io") == "std.io"
    assert namespace_key("com/example/") == "com.example"


def test_module_key_can_keep_extension():
    """Test the full-path key keeps the file extension."""
    assert module_key(ImportInfo("./data.json"), Language.JAVASCRIPT, keep_extension=True) == "data.json"
    assert module_key(ImportInfo("<sys/util.h>"), Language.C, keep_extension=True) == "sys/util.h"
