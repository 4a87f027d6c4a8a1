"""Turns raw analyzer findings into reviewable issues, with or without an LLM."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import List, Sequence

from .llm import LLMClient, extract_json
from .models import AnalyzedIssue, DeadCodeFinding, DependencyFinding, DuplicateFinding

logger = logging.getLogger(__name__)

REVIEW_MAX_TOKENS = 4000

REVIEW_SYSTEM_PROMPT = (
    "You are a senior code reviewer focused on code health and maintainability. "
    "Output only valid JSON."
)

REVIEW_PROMPT = """Analyze this codebase for efficiency issues.

Dead code findings: {dead_code}
Duplicate code findings: {duplicates}
Dependency issues: {dependencies}

For each issue:
1. Assess confidence (0-100%)
2. Estimate impact (low/medium/high)
3. Provide safe removal recommendation
4. Note any potential side effects

Output a valid JSON array of issues with this structure:
[{{"type":"string","severity":"low|medium|high","confidence":0-100,"file_path":"","line_start":0,"line_end":0,"description":"","recommendation":"","build_time_saved":"","size_reduction":"","language":"","code_snippet":""}}]
Respond with ONLY the JSON array, no other text."""


def basic_issues(
    dead_code: Sequence[DeadCodeFinding],
    duplicates: Sequence[DuplicateFinding],
    dependencies: Sequence[DependencyFinding],
) -> List[AnalyzedIssue]:
    """Convert findings directly, dead code first, then duplicates, then dependencies."""
    issues: List[AnalyzedIssue] = []
    for d in dead_code:
        issues.append(AnalyzedIssue(
            type="dead_code",
            severity="medium",
            confidence=d.confidence * 100,
            description=f"Unused function: {d.function_name}",
            recommendation=d.reason,
            file_path=d.file_path,
            line_start=d.line_start,
            line_end=d.line_end,
        ))
    for dup in duplicates:
        issues.append(AnalyzedIssue(
            type="duplicate",
            severity="high",
            confidence=dup.similarity * 100,
            description=f"Duplicate code between {dup.file1} and {dup.file2}",
            recommendation=dup.recommendation,
            file_path=dup.file1,
        ))
    for dep in dependencies:
        unused = dep.reason == "unused"
        issues.append(AnalyzedIssue(
            type="dependency",
            severity="low",
            confidence=90 if unused else 70,
            description=f"{dep.package}: {dep.reason}",
            recommendation="Remove unused dependency" if unused else "Update dependency",
        ))
    return issues


def analyze_with_llm(
    llm: LLMClient,
    dead_code: Sequence[DeadCodeFinding],
    duplicates: Sequence[DuplicateFinding],
    dependencies: Sequence[DependencyFinding],
) -> List[AnalyzedIssue]:
    """Ask the model to triage every finding. Empty list when the answer is unusable."""
    prompt = REVIEW_PROMPT.format(
        dead_code=json.dumps([d.to_dict() for d in dead_code], indent=2),
        duplicates=json.dumps([asdict(d) for d in duplicates], indent=2),
        dependencies=json.dumps([asdict(d) for d in dependencies], indent=2),
    )
    response = llm.generate(prompt, max_tokens=REVIEW_MAX_TOKENS, system=REVIEW_SYSTEM_PROMPT)
    parsed = extract_json(response, array=True)
    if not isinstance(parsed, list):
        logger.warning("LLM review returned no parseable issues")
        return []
    return [AnalyzedIssue.from_dict(item) for item in parsed if isinstance(item, dict)]
