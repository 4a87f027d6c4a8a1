"""Core data models shared by the analyzers, the orchestrator and the CLI."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, List, NamedTuple, Optional, Set


@dataclass(frozen=True)
class SourceFile:
    """A parsed source file. Immutable for the duration of one analysis run."""

    path: Path
    rel_path: str
    language: str
    source: bytes = field(repr=False)
    tree: Any = field(repr=False, compare=False)

    @property
    def module_id(self) -> str:
        return self.rel_path

    @property
    def root(self) -> Any:
        return self.tree.root_node

    def text(self, node: Any) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Declaration:
    qualified_name: str
    name: str
    file: SourceFile
    line_start: int
    line_end: int
    is_exported: bool = False
    is_annotated: bool = False
    is_in_test_file: bool = False

    @property
    def is_root(self) -> bool:
        return self.is_exported or self.is_in_test_file or self.is_annotated


class CallEdge(NamedTuple):
    caller: str
    callee: str


class CallGraph:
    """Directed mapping from a callee's qualified name to its known callers."""

    def __init__(self) -> None:
        self._callers: Dict[str, Set[str]] = {}

    def add_edge(self, callee: str, caller: str) -> None:
        self._callers.setdefault(callee, set()).add(caller)

    def callers_of(self, callee: str) -> FrozenSet[str]:
        return frozenset(self._callers.get(callee, ()))

    def merge(self, other: "CallGraph") -> None:
        for callee, callers in other._callers.items():
            self._callers.setdefault(callee, set()).update(callers)

    def edges(self) -> Iterator[CallEdge]:
        for callee, callers in self._callers.items():
            for caller in sorted(callers):
                yield CallEdge(caller=caller, callee=callee)

    def __contains__(self, callee: object) -> bool:
        return bool(self._callers.get(callee))  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._callers)


@dataclass(frozen=True)
class DeadCodeFinding:
    file_path: str
    function_name: str
    line_start: int
    line_end: int
    confidence: float
    reason: str
    qualified_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filePath": self.file_path,
            "functionName": self.function_name,
            "lineStart": self.line_start,
            "lineEnd": self.line_end,
            "confidence": self.confidence,
            "reason": self.reason,
            "qualifiedName": self.qualified_name,
        }


@dataclass
class CodeBlock:
    file: str
    code: str
    block_type: str
    name: Optional[str] = None


@dataclass
class DuplicateFinding:
    file1: str
    file2: str
    similarity: float
    code_block1: str
    code_block2: str
    recommendation: str


@dataclass
class DependencyFinding:
    package: str
    reason: str  # unused | outdated
    current_version: Optional[str] = None
    latest_version: Optional[str] = None


@dataclass
class AnalyzedIssue:
    type: str
    severity: str
    confidence: float
    description: str
    recommendation: str
    file_path: Optional[str] = None
    line_start: Optional[int] = None
    line_end: Optional[int] = None
    language: Optional[str] = None
    code_snippet: Optional[str] = None
    build_time_saved: Optional[str] = None
    size_reduction: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzedIssue":
        def _line(key: str) -> Optional[int]:
            try:
                return int(data[key]) or None
            except (KeyError, TypeError, ValueError):
                return None

        try:
            confidence = float(data.get("confidence") or 0)
        except (TypeError, ValueError):
            confidence = 0.0
        return cls(
            type=str(data.get("type", "unknown")),
            severity=str(data.get("severity", "medium")),
            confidence=confidence,
            description=str(data.get("description", "")),
            recommendation=str(data.get("recommendation", "")),
            file_path=data.get("file_path") or None,
            line_start=_line("line_start"),
            line_end=_line("line_end"),
            language=data.get("language") or None,
            code_snippet=data.get("code_snippet") or None,
            build_time_saved=data.get("build_time_saved") or None,
            size_reduction=data.get("size_reduction") or None,
        )


@dataclass
class AnalysisResult:
    findings: List[AnalyzedIssue]
    dead_code: List[DeadCodeFinding]
    duplicates: List[DuplicateFinding]
    dependencies: List[DependencyFinding]
    health_score: int
    total_issues: int
    estimated_savings: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "findings": [asdict(f) for f in self.findings],
            "deadCode": [d.to_dict() for d in self.dead_code],
            "duplicates": [asdict(d) for d in self.duplicates],
            "dependencies": [asdict(d) for d in self.dependencies],
            "healthScore": self.health_score,
            "totalIssues": self.total_issues,
            "estimatedSavings": self.estimated_savings,
        }
