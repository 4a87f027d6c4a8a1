"""Coordinates the analyzers, issue synthesis, scoring and publishing."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable, Dict, List, Optional, TypeVar

from .config import Settings
from .dead_code import DeadCodeAnalyzer
from .dependency_analyzer import DependencyAnalyzer
from .duplicate_analyzer import DuplicateAnalyzer
from .gitlab import GitLabService
from .issues import analyze_with_llm, basic_issues
from .llm import LLMClient
from .metrics import HealthMetrics
from .models import AnalysisResult, AnalyzedIssue

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CodeHealthOptimizer:
    """Runs dead code, duplicate and dependency analysis over one repository."""

    def __init__(self, settings: Settings, publish: bool = True, llm: Optional[LLMClient] = None):
        self.settings = settings
        self.repo_path = settings.repo_path.resolve()
        self.publish = publish
        self.llm = llm or LLMClient(settings.llm)
        self.metrics = HealthMetrics()

    def _analyzers(self) -> Dict[str, Callable[[], list]]:
        analysis = self.settings.analysis
        analyzers: Dict[str, Callable[[], list]] = {
            "dead_code": DeadCodeAnalyzer(
                self.repo_path,
                test_markers=analysis.test_markers,
                confidence=analysis.confidence,
                workers=analysis.workers,
            ).analyze,
            "dependencies": DependencyAnalyzer(self.repo_path).analyze_npm,
        }
        if self.llm.enabled:
            analyzers["duplicates"] = DuplicateAnalyzer(self.llm, self.repo_path).analyze
        else:
            logger.info("No LLM configured, skipping duplicate detection")
        return analyzers

    @staticmethod
    def _collect(name: str, future: "concurrent.futures.Future[List[T]]") -> List[T]:
        try:
            return future.result()
        except Exception:
            logger.exception("%s analyzer failed", name)
            return []

    def analyze(self) -> AnalysisResult:
        analyzers = self._analyzers()
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(analyzers)) as executor:
            futures = {name: executor.submit(fn) for name, fn in analyzers.items()}
            results = {name: self._collect(name, future) for name, future in futures.items()}

        dead_code = results.get("dead_code", [])
        duplicates = results.get("duplicates", [])
        dependencies = results.get("dependencies", [])

        findings: List[AnalyzedIssue] = []
        if self.llm.enabled:
            findings = analyze_with_llm(self.llm, dead_code, duplicates, dependencies)
        if not findings:
            findings = basic_issues(dead_code, duplicates, dependencies)

        if self.publish:
            self.publish_issues(findings)

        return AnalysisResult(
            findings=findings,
            dead_code=dead_code,
            duplicates=duplicates,
            dependencies=dependencies,
            health_score=self.metrics.calculate_health_score(findings),
            total_issues=len(findings),
            estimated_savings=self.metrics.estimate_time_savings(findings),
        )

    def publish_issues(self, findings: List[AnalyzedIssue]) -> None:
        gitlab = self.settings.gitlab
        if not gitlab.enabled or not findings:
            return
        GitLabService(gitlab.token, gitlab.project_id, gitlab.url).create_health_issues(findings)
