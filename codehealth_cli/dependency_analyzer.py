"""npm dependency analysis: declared-but-unimported packages and outdated versions."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Dict, List, Set

from .discovery import find_files
from .models import DependencyFinding

logger = logging.getLogger(__name__)

NPM_OUTDATED_TIMEOUT = 120

# import x from 'pkg' / import 'pkg' / export { x } from 'pkg' / require('pkg') / import('pkg')
_IMPORT_PATTERNS = (
    re.compile(r"""\bimport\s+[^'"]*?\s+from\s+['"]([^'"]+)['"]"""),
    re.compile(r"""\bimport\s+['"]([^'"]+)['"]"""),
    re.compile(r"""\bexport\s+[^'";]*?\s+from\s+['"]([^'"]+)['"]"""),
    re.compile(r"""\brequire\(\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""\bimport\(\s*['"]([^'"]+)['"]\s*\)"""),
)


def package_name(specifier: str) -> str:
    """``@scope/pkg/sub`` -> ``@scope/pkg``; ``pkg/sub`` -> ``pkg``."""
    parts = specifier.split("/")
    if specifier.startswith("@"):
        return "/".join(parts[:2])
    return parts[0]


def imported_packages(content: str) -> Set[str]:
    used: Set[str] = set()
    for pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(content):
            specifier = match.group(1)
            if specifier.startswith((".", "/")):
                continue
            used.add(package_name(specifier))
    return used


class DependencyAnalyzer:
    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path).resolve()

    def _read_manifest(self) -> Dict[str, str]:
        manifest_path = self.repo_path / "package.json"
        if not manifest_path.exists():
            return {}
        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s: %s", manifest_path, exc)
            return {}
        declared: Dict[str, str] = {}
        declared.update(manifest.get("dependencies") or {})
        declared.update(manifest.get("devDependencies") or {})
        return declared

    def analyze_npm(self) -> List[DependencyFinding]:
        declared = self._read_manifest()
        if not declared:
            return []

        findings: List[DependencyFinding] = []
        used = self.find_used_dependencies()
        for dep, version in declared.items():
            if self._is_used(dep, used):
                continue
            findings.append(DependencyFinding(package=dep, reason="unused", current_version=version))

        findings.extend(self.find_outdated())
        return findings

    @staticmethod
    def _is_used(dep: str, used: Set[str]) -> bool:
        if dep in used:
            return True
        if dep.startswith("@types/"):
            # @types/lodash -> lodash, @types/babel__core -> @babel/core
            target = dep[len("@types/"):]
            if "__" in target:
                scope, _, name = target.partition("__")
                target = f"@{scope}/{name}"
            return target in used
        return False

    def find_used_dependencies(self) -> Set[str]:
        used: Set[str] = set()
        for path in find_files(self.repo_path):
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Skipping unreadable %s: %s", path, exc)
                continue
            used |= imported_packages(content)
        return used

    def find_outdated(self) -> List[DependencyFinding]:
        """Run ``npm outdated --json``. It exits 1 when anything is outdated."""
        try:
            proc = subprocess.run(
                ["npm", "outdated", "--json"],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                timeout=NPM_OUTDATED_TIMEOUT,
            )
        except FileNotFoundError:
            logger.info("npm not found, skipping outdated check")
            return []
        except subprocess.TimeoutExpired:
            logger.warning("npm outdated timed out after %ds", NPM_OUTDATED_TIMEOUT)
            return []

        output = (proc.stdout or "").strip()
        if not output:
            return []
        try:
            data = json.loads(output)
        except json.JSONDecodeError:
            logger.warning("npm outdated produced invalid JSON")
            return []

        findings = []
        for pkg, info in data.items():
            if not isinstance(info, dict):
                continue
            findings.append(DependencyFinding(
                package=pkg,
                reason="outdated",
                current_version=info.get("current"),
                latest_version=info.get("latest"),
            ))
        return findings
