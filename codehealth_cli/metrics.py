"""Health score and effort estimates derived from analyzed issues."""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Dict, List, Sequence

from .models import AnalyzedIssue

TYPE_WEIGHTS: Dict[str, float] = {
    "dead_code": 0.3,
    "duplicate": 0.4,
    "dependency": 0.2,
    "complexity": 0.1,
}

# Hours saved per resolved issue
TIME_SAVINGS: Dict[str, float] = {
    "dead_code": 0.5,
    "duplicate": 2.0,
    "dependency": 0.25,
}

_ALIASES = {"duplicates": "duplicate", "dependencies": "dependency"}


def normalize_type(issue_type: str) -> str:
    key = re.sub(r"\s+", "_", (issue_type or "unknown").strip().lower())
    return _ALIASES.get(key, key)


class HealthMetrics:
    """Weighted 0-100 score: 100 means nothing to clean up."""

    def calculate_health_score(self, issues: Sequence[AnalyzedIssue]) -> int:
        by_type: Dict[str, List[AnalyzedIssue]] = defaultdict(list)
        for issue in issues:
            by_type[normalize_type(issue.type)].append(issue)

        weighted = sum(self._score_by_type(t, by_type.get(t, [])) * w for t, w in TYPE_WEIGHTS.items())
        total_weight = sum(TYPE_WEIGHTS.values())
        return round(min(100.0, max(0.0, weighted / total_weight)))

    def estimate_time_savings(self, issues: Sequence[AnalyzedIssue]) -> float:
        return sum(TIME_SAVINGS.get(normalize_type(i.type), 0.0) for i in issues)

    def _score_by_type(self, issue_type: str, issues: List[AnalyzedIssue]) -> float:
        if issue_type == "dead_code":
            return self._score_dead_code(issues)
        if issue_type == "duplicate":
            return max(100.0 - min(len(issues) * 5, 60), 0.0)
        if issue_type == "dependency":
            return max(100.0 - min(len(issues) * 3, 40), 0.0)
        return 100.0

    @staticmethod
    def _score_dead_code(issues: List[AnalyzedIssue]) -> float:
        # Issues without a line span count as one line
        lines = sum(max(0, (i.line_end or 0) - (i.line_start or 0)) or 1 for i in issues)
        return max(100.0 - min(lines / 100, 50), 0.0)
