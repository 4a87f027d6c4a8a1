"""Tests for the npm dependency analyzer."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from codehealth_cli.dependency_analyzer import DependencyAnalyzer, imported_packages, package_name


@pytest.fixture
def npm_outdated(monkeypatch):
    """Replace ``npm outdated --json`` with a canned result."""

    def _install(stdout: str = "", returncode: int = 1):
        run = MagicMock(return_value=subprocess.CompletedProcess(
            args=["npm", "outdated", "--json"], returncode=returncode, stdout=stdout, stderr="",
        ))
        monkeypatch.setattr("codehealth_cli.dependency_analyzer.subprocess.run", run)
        return run

    return _install


def test_package_name():
    assert package_name("lodash") == "lodash"
    assert package_name("lodash/fp") == "lodash"
    assert package_name("@scope/pkg") == "@scope/pkg"
    assert package_name("@scope/pkg/deep/path") == "@scope/pkg"


def test_imported_packages_covers_import_forms():
    content = (
        "import React from 'react';\n"
        "import { a, b } from \"@scope/ui/button\";\n"
        "import 'polyfill';\n"
        "export { x } from 'reexported';\n"
        "const fs = require('fs-extra');\n"
        "const lazy = await import('lazy-lib');\n"
        "import local from './local';\n"
        "import abs from '/abs/path';\n"
    )
    assert imported_packages(content) == {
        "react", "@scope/ui", "polyfill", "reexported", "fs-extra", "lazy-lib",
    }


def test_sample_repo_reports_unused_dependency(sample_repo_path: Path):
    findings = DependencyAnalyzer(sample_repo_path).analyze_npm()

    assert [(f.package, f.reason, f.current_version) for f in findings] == [
        ("left-pad", "unused", "^1.3.0"),
    ]


def test_types_package_counts_as_used_with_its_runtime_package(write_repo):
    root = write_repo({
        "package.json": json.dumps({
            "devDependencies": {"@types/lodash": "1", "@types/babel__core": "1", "@types/express": "1"},
            "dependencies": {"lodash": "4", "@babel/core": "7"},
        }),
        "a.ts": "import _ from 'lodash';\nimport { transform } from '@babel/core';\n",
    })
    findings = DependencyAnalyzer(root).analyze_npm()
    assert [f.package for f in findings] == ["@types/express"]


def test_outdated_packages(write_repo, npm_outdated):
    root = write_repo({
        "package.json": json.dumps({"dependencies": {"react": "^17.0.0"}}),
        "a.js": "const React = require('react');\n",
    })
    run = npm_outdated(json.dumps({"react": {"current": "17.0.2", "wanted": "17.0.2", "latest": "18.3.1"}}))

    findings = DependencyAnalyzer(root).analyze_npm()

    assert len(findings) == 1
    assert findings[0].package == "react"
    assert findings[0].reason == "outdated"
    assert findings[0].current_version == "17.0.2"
    assert findings[0].latest_version == "18.3.1"
    args, kwargs = run.call_args
    assert args[0] == ["npm", "outdated", "--json"]
    assert kwargs["cwd"] == root.resolve()


def test_outdated_invalid_json_is_ignored(write_repo, npm_outdated):
    root = write_repo({
        "package.json": json.dumps({"dependencies": {"react": "17"}}),
        "a.js": "require('react');\n",
    })
    npm_outdated("npm ERR! something broke")
    assert DependencyAnalyzer(root).analyze_npm() == []


def test_outdated_timeout_is_ignored(write_repo, monkeypatch):
    root = write_repo({
        "package.json": json.dumps({"dependencies": {"react": "17"}}),
        "a.js": "require('react');\n",
    })

    def _timeout(*args, **kwargs):
        raise subprocess.TimeoutExpired(cmd="npm outdated", timeout=120)

    monkeypatch.setattr("codehealth_cli.dependency_analyzer.subprocess.run", _timeout)
    assert DependencyAnalyzer(root).analyze_npm() == []


def test_missing_package_json(temp_dir: Path):
    assert DependencyAnalyzer(temp_dir).analyze_npm() == []


def test_invalid_package_json(write_repo):
    root = write_repo({"package.json": "{not json"})
    assert DependencyAnalyzer(root).analyze_npm() == []
