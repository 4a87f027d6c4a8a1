"""Dead code detection based on a static, whole-program call graph.

One analysis run goes through three sequential passes:

1. parse every discovered file and index its symbols,
2. build the callee -> {callers} graph over *all* files,
3. classify each declaration as a root, referenced, or unreferenced.

Roots are exported declarations, declarations in test files and decorated
declarations. Every other declaration with no statically known caller is
reported as dead. Calls that cannot be resolved are dropped, which biases
the report toward fewer false "dead" labels.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence

from .config import DEFAULT_CONFIDENCE, DEFAULT_TEST_MARKERS
from .discovery import find_files
from .models import CallGraph, DeadCodeFinding, Declaration, SourceFile
from .parser import SourceParser
from .symbols import FUNCTION_DECLARATIONS, FUNCTION_LIKE, SymbolTable, walk

logger = logging.getLogger(__name__)

DEAD_CODE_REASON = "Function has no internal references and is not exported"

_ACCESSOR_KEYWORDS = frozenset({"get", "set"})


class Reachability(enum.Enum):
    ROOT = "root"
    REFERENCED = "referenced"
    UNREFERENCED = "unreferenced"


def is_test_file(rel_path: str, markers: Sequence[str] = DEFAULT_TEST_MARKERS) -> bool:
    return any(marker in rel_path for marker in markers)


def _is_candidate(node: Any) -> bool:
    """Function declarations and methods; constructors and accessors are excluded."""
    if node.type in FUNCTION_DECLARATIONS:
        return node.child_by_field_name("body") is not None
    if node.type != "method_definition":
        return False
    if any(not child.is_named and child.type in _ACCESSOR_KEYWORDS for child in node.children):
        return False
    name = node.child_by_field_name("name")
    if name is not None and name.type == "property_identifier" and name.text == b"constructor":
        return False
    return node.child_by_field_name("body") is not None


# ---------------------------------------------------------------------------
# Declaration extraction
# ---------------------------------------------------------------------------

class DeclarationExtractor:
    """Yields function-like declarations in file order, then document order."""

    def __init__(self, symbols: SymbolTable, test_markers: Sequence[str] = DEFAULT_TEST_MARKERS) -> None:
        self.symbols = symbols
        self.test_markers = tuple(test_markers)

    def extract(self, files: Iterable[SourceFile]) -> Iterator[Declaration]:
        for source_file in files:
            yield from self.extract_file(source_file)

    def extract_file(self, source_file: SourceFile) -> Iterator[Declaration]:
        module = self.symbols.module_for(source_file)
        in_test_file = is_test_file(source_file.rel_path, self.test_markers)
        for node in walk(source_file.root):
            if not _is_candidate(node):
                continue
            qname = self.symbols.qualified_name(module, node)
            if qname is None:
                logger.debug("Skipping unnameable declaration at %s:%d", source_file.rel_path, node.start_point[0] + 1)
                continue
            name = node.child_by_field_name("name")
            yield Declaration(
                qualified_name=qname,
                name=source_file.text(name) if name is not None else qname.rsplit(".", 1)[-1],
                file=source_file,
                line_start=node.start_point[0] + 1,
                line_end=node.end_point[0] + 1,
                is_exported=self.symbols.is_exported(module, node),
                is_annotated=self.symbols.is_annotated(node),
                is_in_test_file=in_test_file,
            )


# ---------------------------------------------------------------------------
# Call graph construction
# ---------------------------------------------------------------------------

class CallGraphBuilder:
    """Resolves every call expression to a callee and records callee -> caller edges."""

    def __init__(self, symbols: SymbolTable) -> None:
        self.symbols = symbols

    def build(self, files: Iterable[SourceFile], graph: Optional[CallGraph] = None) -> CallGraph:
        graph = CallGraph() if graph is None else graph
        for source_file in files:
            graph.merge(self.build_file(source_file))
        return graph

    def build_file(self, source_file: SourceFile) -> CallGraph:
        graph = CallGraph()
        module = self.symbols.module_for(source_file)
        for node in walk(source_file.root):
            if node.type != "call_expression":
                continue
            callee_node = node.child_by_field_name("function")
            if callee_node is None:
                continue
            callee = self.symbols.resolve_callee(module, callee_node)
            if callee is None:
                continue
            graph.add_edge(callee, self.enclosing_caller(source_file, node))
        return graph

    def enclosing_caller(self, source_file: SourceFile, node: Any) -> str:
        """Nearest enclosing named function-like node, else the module-scope caller.

        Anonymous functions (callbacks, IIFEs) are walked through so a call
        inside them is attributed to the declaration that contains them.
        """
        module = self.symbols.module_for(source_file)
        parent = node.parent
        while parent is not None:
            if parent.type in FUNCTION_LIKE:
                qname = self.symbols.qualified_name(module, parent)
                if qname is not None and not qname.endswith(">"):
                    return qname
            parent = parent.parent
        return self.symbols.module_scope_name(module)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class ReachabilityClassifier:
    """Classifies declarations against a completed call graph. Never mutates it."""

    def __init__(self, confidence: float = DEFAULT_CONFIDENCE) -> None:
        self.confidence = confidence

    @staticmethod
    def classify(declaration: Declaration, graph: CallGraph) -> Reachability:
        if declaration.is_root:
            return Reachability.ROOT
        if graph.callers_of(declaration.qualified_name):
            return Reachability.REFERENCED
        return Reachability.UNREFERENCED

    def finding_for(self, declaration: Declaration) -> DeadCodeFinding:
        return DeadCodeFinding(
            file_path=declaration.file.rel_path,
            function_name=declaration.name,
            line_start=declaration.line_start,
            line_end=declaration.line_end,
            confidence=self.confidence,
            reason=DEAD_CODE_REASON,
            qualified_name=declaration.qualified_name,
        )

    def findings(self, declarations: Iterable[Declaration], graph: CallGraph) -> List[DeadCodeFinding]:
        return [
            self.finding_for(d)
            for d in declarations
            if self.classify(d, graph) is Reachability.UNREFERENCED
        ]


# ---------------------------------------------------------------------------
# Analysis run
# ---------------------------------------------------------------------------

class DeadCodeAnalyzer:
    """Runs the reachability engine over a repository.

    Every call to :meth:`analyze` builds a fresh symbol table, declaration
    list and call graph; nothing is shared between runs.
    """

    def __init__(
        self,
        repo_path: Path,
        test_markers: Sequence[str] = DEFAULT_TEST_MARKERS,
        confidence: float = DEFAULT_CONFIDENCE,
        workers: int = 1,
    ) -> None:
        self.repo_path = Path(repo_path).resolve()
        self.test_markers = tuple(test_markers)
        self.confidence = confidence
        self.workers = workers

    def analyze(self, files: Optional[Sequence[Path]] = None) -> List[DeadCodeFinding]:
        paths = find_files(self.repo_path) if files is None else list(files)
        if not paths:
            logger.info("No source files to analyze under %s", self.repo_path)
            return []

        parser = SourceParser(self.repo_path)
        sources = parser.parse_files(paths, workers=self.workers)
        symbols = SymbolTable(sources)

        declarations = list(DeclarationExtractor(symbols, self.test_markers).extract(sources))
        graph = CallGraphBuilder(symbols).build(sources)
        findings = ReachabilityClassifier(self.confidence).findings(declarations, graph)

        logger.info(
            "Dead code analysis: %d files, %d declarations, %d call targets, %d findings",
            len(sources), len(declarations), len(graph), len(findings),
        )
        return findings
