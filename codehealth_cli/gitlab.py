"""Publishes analysis results to GitLab as issues and draft merge requests."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from .models import AnalyzedIssue

logger = logging.getLogger(__name__)

DEFAULT_GITLAB_URL = "https://gitlab.com"
DEFAULT_TIMEOUT = 30

ISSUE_LABELS = ("code-health", "technical-debt")
MR_LABELS = ("code-health", "automated", "needs-review")


class GitLabError(Exception):
    """A GitLab API call failed."""


@dataclass
class DryRunFix:
    """A proposed single-file change for a draft merge request."""

    type: str
    description: str
    file_path: str
    new_content: str
    confidence: float
    diff: str
    impact_analysis: str


def group_by_severity(issues: Sequence[AnalyzedIssue]) -> "OrderedDict[str, List[AnalyzedIssue]]":
    grouped: "OrderedDict[str, List[AnalyzedIssue]]" = OrderedDict()
    for issue in issues:
        grouped.setdefault(issue.severity or "medium", []).append(issue)
    return grouped


def format_issue_description(issues: Sequence[AnalyzedIssue]) -> str:
    sections = []
    for i, issue in enumerate(issues, 1):
        sections.append(
            f"### {i}. {issue.description or 'Code Health Issue'}\n\n"
            f"**File:** `{issue.file_path or ''}`\n"
            f"**Lines:** {issue.line_start or 0}-{issue.line_end or 0}\n"
            f"**Confidence:** {issue.confidence:g}%\n\n"
            f"**Recommendation:**\n{issue.recommendation}\n\n"
            f"```{issue.language or 'text'}\n{issue.code_snippet or ''}\n```\n\n---\n"
        )
    return (
        "## Code Health Issues Found\n\n"
        f"This issue contains {len(issues)} code health findings that should be reviewed.\n\n"
        + "\n".join(sections)
        + "\n## Next Steps\n"
        "1. Review each finding\n"
        "2. Create MRs for confirmed issues\n"
        "3. Close issue when all items are addressed"
    )


def format_mr_description(fix: DryRunFix) -> str:
    return (
        "## Automated Code Health Fix\n\n"
        f"**Type:** {fix.type}\n"
        f"**Confidence:** {fix.confidence:g}%\n\n"
        f"### What This Removes\n```diff\n{fix.diff}\n```\n\n"
        f"### Impact Analysis\n{fix.impact_analysis}\n\n"
        "### Review Checklist\n"
        "- [ ] Verify no runtime dependencies\n"
        "- [ ] Check test coverage\n"
        "- [ ] Confirm build passes\n\n"
        "---\n"
        "**This is a DRY RUN MR** - Review carefully before merging"
    )


class GitLabService:
    """Thin client over the GitLab REST API v4."""

    def __init__(self, token: str, project_id: str, url: str = DEFAULT_GITLAB_URL,
                 session: Optional[requests.Session] = None):
        self.project_id = str(project_id)
        self.base_url = url.rstrip("/") + "/api/v4"
        self.session = session or requests.Session()
        self.session.headers.update({"PRIVATE-TOKEN": token})

    def _project_url(self, path: str) -> str:
        return f"{self.base_url}/projects/{quote(self.project_id, safe='')}/{path}"

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = self._project_url(path)
        try:
            response = self.session.post(url, json=payload, timeout=DEFAULT_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise GitLabError(f"POST {path} failed: {exc}") from exc
        except ValueError as exc:
            raise GitLabError(f"POST {path} returned invalid JSON") from exc

    def create_health_issues(self, issues: Sequence[AnalyzedIssue]) -> List[Dict[str, Any]]:
        """Open one GitLab issue per severity level. Returns the created issues."""
        created = []
        for severity, group in group_by_severity(issues).items():
            result = self._post("issues", {
                "title": f"Code Health: {severity} Priority Issues ({len(group)} found)",
                "description": format_issue_description(group),
                "labels": ",".join(ISSUE_LABELS + (f"severity::{severity}",)),
            })
            logger.info("Created GitLab issue %s for %d %s findings", result.get("iid"), len(group), severity)
            created.append(result)
        return created

    def create_dry_run_mr(self, fix: DryRunFix, target_branch: str = "main") -> Dict[str, Any]:
        """Create a branch, commit *fix* to it and open a draft merge request."""
        branch = f"code-health/remove-{fix.type}-{int(time.time() * 1000)}"

        self._post("repository/branches", {"branch": branch, "ref": target_branch})
        self._post("repository/commits", {
            "branch": branch,
            "commit_message": f"Remove {fix.type}: {fix.description}",
            "actions": [{
                "action": "update",
                "file_path": fix.file_path,
                "content": fix.new_content,
            }],
        })
        mr = self._post("merge_requests", {
            "source_branch": branch,
            "target_branch": target_branch,
            "title": f"Draft: [DRY RUN] Remove {fix.type}",
            "description": format_mr_description(fix),
            "labels": ",".join(MR_LABELS),
        })
        logger.info("Opened draft merge request %s from %s", mr.get("iid"), branch)
        return mr
