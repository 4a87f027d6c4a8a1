"""Tests for the reachability-based dead code analyzer."""

from pathlib import Path

from codehealth_cli.dead_code import (
    DEAD_CODE_REASON,
    CallGraphBuilder,
    DeadCodeAnalyzer,
    DeclarationExtractor,
    Reachability,
    ReachabilityClassifier,
    is_test_file,
)
from codehealth_cli.discovery import find_files
from codehealth_cli.models import CallGraph
from codehealth_cli.parser import SourceParser
from codehealth_cli.symbols import SymbolTable


def _dead_names(root: Path, **kwargs):
    return [f.function_name for f in DeadCodeAnalyzer(root, **kwargs).analyze()]


def _engine(root: Path):
    sources = SourceParser(root).parse_files(find_files(root))
    symbols = SymbolTable(sources)
    declarations = list(DeclarationExtractor(symbols).extract(sources))
    graph = CallGraphBuilder(symbols).build(sources)
    return declarations, graph


class TestScenarios:
    def test_used_and_dead_across_files(self, write_repo):
        root = write_repo({
            "src/utils.ts": (
                "export function formatDate(d: Date) {\n"
                "  return pad(d.getDate());\n"
                "}\n"
                "function pad(n: number) {\n"
                "  return String(n).padStart(2, '0');\n"
                "}\n"
                "function neverCalled() {\n"
                "  return 0;\n"
                "}\n"
            ),
            "src/app.ts": "import { formatDate } from './utils';\nformatDate(new Date());\n",
        })
        findings = DeadCodeAnalyzer(root).analyze()

        assert len(findings) == 1
        finding = findings[0]
        assert finding.function_name == "neverCalled"
        assert finding.file_path == "src/utils.ts"
        assert finding.line_start == 7
        assert finding.line_end == 9
        assert finding.confidence == 0.9
        assert finding.reason == DEAD_CODE_REASON
        assert finding.qualified_name == '"src/utils.ts".neverCalled'

    def test_exported_entry_point_keeps_its_helper_alive(self, write_repo):
        root = write_repo({"main.ts": (
            "export function main() {\n"
            "  helper();\n"
            "}\n"
            "function helper() {}\n"
        )})
        assert _dead_names(root) == []

    def test_functions_in_test_files_are_never_dead(self, write_repo):
        root = write_repo({
            "util.ts": "export const x = 1;\n",
            "util.test.ts": "function fixtureOnly() {\n  return 1;\n}\n",
            "util.spec.js": "function specHelper() {}\n",
        })
        assert _dead_names(root) == []

    def test_zero_input_files(self, temp_dir: Path):
        assert DeadCodeAnalyzer(temp_dir).analyze() == []
        assert DeadCodeAnalyzer(temp_dir).analyze(files=[]) == []

    def test_sample_repository(self, sample_repo_path: Path):
        findings = DeadCodeAnalyzer(sample_repo_path).analyze()

        assert [(f.file_path, f.function_name) for f in findings] == [
            ("src/greeter.ts", "shout"),
            ("src/utils/format.ts", "orphanUtil"),
            ("src/legacy.js", "deadHelper"),
        ]
        assert [f.qualified_name for f in findings] == [
            '"src/greeter.ts".Formatter.shout',
            '"src/utils/format.ts".orphanUtil',
            '"src/legacy.js".deadHelper',
        ]


class TestRoots:
    def test_decorated_methods_are_roots(self, write_repo):
        root = write_repo({"ctrl.ts": (
            "function Get(path: string) { return (t: any, k: string) => {}; }\n"
            "class Controller {\n"
            "  @Get('/users')\n"
            "  list() { return []; }\n"
            "  unused() { return 1; }\n"
            "}\n"
            "new Controller();\n"
            "Get('/x');\n"
        )})
        assert _dead_names(root) == ["unused"]

    def test_members_of_exported_class_are_roots(self, write_repo):
        root = write_repo({"a.ts": "export class Api {\n  ping() {}\n  pong() {}\n}\n"})
        assert _dead_names(root) == []

    def test_function_nested_in_exported_function_is_not_a_root(self, write_repo):
        root = write_repo({"a.ts": (
            "export function outer() {\n"
            "  function inner() {}\n"
            "  return 1;\n"
            "}\n"
        )})
        assert _dead_names(root) == ["inner"]

    def test_commonjs_exports_are_roots(self, write_repo):
        root = write_repo({"lib.js": (
            "function a() {}\n"
            "function b() {}\n"
            "function c() {}\n"
            "module.exports = { a };\n"
            "exports.b = b;\n"
        )})
        assert _dead_names(root) == ["c"]

    def test_custom_test_markers(self, write_repo):
        root = write_repo({"__tests__/a.ts": "function helper() {}\n"})
        assert _dead_names(root) == ["helper"]
        assert _dead_names(root, test_markers=("__tests__/",)) == []


class TestReferences:
    def test_module_scope_calls_count_as_references(self, write_repo):
        root = write_repo({"boot.js": "function start() {}\nstart();\n"})
        assert _dead_names(root) == []

    def test_calls_inside_callbacks_are_attributed_to_enclosing_function(self, write_repo):
        root = write_repo({"a.ts": (
            "function work() {}\n"
            "export function run(items: number[]) {\n"
            "  items.forEach(() => work());\n"
            "}\n"
        )})
        declarations, graph = _engine(root)

        assert graph.callers_of('"a.ts".work') == frozenset({'"a.ts".run'})
        assert _dead_names(root) == []

    def test_method_called_through_this(self, write_repo):
        root = write_repo({"a.ts": (
            "class Cart {\n"
            "  constructor() { this.reset(); }\n"
            "  reset() { this.clear(); }\n"
            "  clear() {}\n"
            "  orphan() {}\n"
            "}\n"
            "new Cart();\n"
        )})
        assert _dead_names(root) == ["orphan"]

    def test_function_passed_as_callback_is_not_a_reference(self, write_repo):
        root = write_repo({"a.js": (
            "function onClick() {}\n"
            "document.addEventListener('click', onClick);\n"
        )})
        assert _dead_names(root) == ["onClick"]

    def test_self_recursion_counts_as_a_reference(self, write_repo):
        root = write_repo({"a.js": "function loop(n) {\n  if (n > 0) loop(n - 1);\n}\n"})
        assert _dead_names(root) == []

    def test_shadowing_parameter_does_not_reference_outer_function(self, write_repo):
        root = write_repo({"a.js": (
            "function helper() {}\n"
            "function run(helper) {\n"
            "  helper();\n"
            "}\n"
            "run(null);\n"
        )})
        assert _dead_names(root) == ["helper"]

    def test_same_named_methods_in_different_classes(self, write_repo):
        root = write_repo({"m.ts": (
            "class A {\n"
            "  run() {}\n"
            "}\n"
            "class B {\n"
            "  run() {}\n"
            "}\n"
            "new A().run();\n"
        )})
        findings = DeadCodeAnalyzer(root).analyze()
        assert [f.qualified_name for f in findings] == ['"m.ts".B.run']

    def test_same_named_functions_in_different_files(self, write_repo):
        root = write_repo({
            "x.ts": "function run() {}\n",
            "y.ts": "function run() {}\nrun();\n",
        })
        findings = DeadCodeAnalyzer(root).analyze()
        assert [(f.file_path, f.qualified_name) for f in findings] == [("x.ts", '"x.ts".run')]

    def test_files_differing_only_by_extension_keep_separate_names(self, write_repo):
        root = write_repo({
            "a.ts": "function helper() {}\n",
            "a.js": "function helper() {}\nhelper();\n",
        })
        findings = DeadCodeAnalyzer(root).analyze()
        assert [(f.file_path, f.function_name) for f in findings] == [("a.ts", "helper")]

    def test_constructors_and_accessors_are_not_candidates(self, write_repo):
        root = write_repo({"a.ts": (
            "class Point {\n"
            "  constructor() {}\n"
            "  get x() { return 1; }\n"
            "  set x(v: number) {}\n"
            "}\n"
        )})
        declarations, _graph = _engine(root)
        assert declarations == []


class TestProperties:
    def test_parse_failures_are_skipped(self, write_repo):
        root = write_repo({
            "good.ts": "function lonely() {}\n",
            "bad.ts": "function broken( {\n",
        })
        findings = DeadCodeAnalyzer(root).analyze()
        assert [f.file_path for f in findings] == ["good.ts"]

    def test_analysis_is_idempotent(self, sample_repo_path: Path):
        analyzer = DeadCodeAnalyzer(sample_repo_path)
        first = analyzer.analyze()
        second = analyzer.analyze()
        assert first == second

    def test_parallel_parsing_gives_same_findings(self, sample_repo_path: Path):
        sequential = DeadCodeAnalyzer(sample_repo_path).analyze()
        threaded = DeadCodeAnalyzer(sample_repo_path, workers=4).analyze()
        assert threaded == sequential

    def test_classification_is_exhaustive(self, sample_repo_path: Path):
        declarations, graph = _engine(sample_repo_path)
        classifier = ReachabilityClassifier()
        dead = {f.qualified_name for f in classifier.findings(declarations, graph)}

        assert declarations
        for declaration in declarations:
            state = classifier.classify(declaration, graph)
            if declaration.is_root:
                assert state is Reachability.ROOT
            elif graph.callers_of(declaration.qualified_name):
                assert state is Reachability.REFERENCED
            else:
                assert state is Reachability.UNREFERENCED
            assert (state is Reachability.UNREFERENCED) == (declaration.qualified_name in dead)

    def test_classifier_does_not_mutate_graph(self, sample_repo_path: Path):
        declarations, graph = _engine(sample_repo_path)
        before = sorted(graph.edges())
        ReachabilityClassifier().findings(declarations, graph)
        assert sorted(graph.edges()) == before

    def test_confidence_is_configurable(self, write_repo):
        root = write_repo({"a.ts": "function gone() {}\n"})
        findings = DeadCodeAnalyzer(root, confidence=0.5).analyze()
        assert findings[0].confidence == 0.5

    def test_finding_serialization(self, write_repo):
        root = write_repo({"a.ts": "function gone() {}\n"})
        data = DeadCodeAnalyzer(root).analyze()[0].to_dict()
        assert data == {
            "filePath": "a.ts",
            "functionName": "gone",
            "lineStart": 1,
            "lineEnd": 1,
            "confidence": 0.9,
            "reason": DEAD_CODE_REASON,
            "qualifiedName": '"a.ts".gone',
        }


def test_is_test_file():
    assert is_test_file("src/a.test.ts")
    assert is_test_file("src/a.spec.tsx")
    assert not is_test_file("src/testing.ts")


def test_call_graph_merge_and_membership():
    a = CallGraph()
    a.add_edge("f", "g")
    b = CallGraph()
    b.add_edge("f", "h")
    b.add_edge("k", "g")
    a.merge(b)

    assert a.callers_of("f") == frozenset({"g", "h"})
    assert "k" in a
    assert "missing" not in a
    assert len(a) == 2
