"""
Lightweight project analysis: type, dependencies, layout, notable files.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import CodeCraftError
from .gitops import GitClient
from .paths import PathResolver

logger = logging.getLogger("codecraft.project")

# Marker file -> project type, first hit wins.
PROJECT_MARKERS = (
    ("package.json", "node.js"),
    ("pyproject.toml", "python"),
    ("requirements.txt", "python"),
    ("setup.py", "python"),
    ("pom.xml", "java-maven"),
    ("build.gradle", "java-gradle"),
    ("Cargo.toml", "rust"),
    ("go.mod", "go"),
)

SKIP_DIRS = {"node_modules", "__pycache__", "venv", ".venv"}

_TEST_FILE = re.compile(r"(\.(test|spec)\.(js|ts|py|java)$)|(^test_.*\.py$)|(_test\.(py|go)$)")
_CONFIG_FILE = re.compile(r"^(config|settings|.*rc)\.(json|js|yaml|yml|toml)$")
_ENTRY_FILE = re.compile(r"^(index|main|app|__main__)\.(js|ts|py|java|go|rs)$")


def _requirements(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return [ln.strip() for ln in f if ln.strip() and not ln.strip().startswith(("#", "-"))]


def _pyproject(path: str, analysis: Dict[str, Any]) -> None:
    with open(path, "r", encoding="utf-8") as f:
        doc = tomlkit.parse(f.read()).unwrap()
    project = doc.get("project", {})
    optional = project.get("optional-dependencies", {})
    analysis["dependencies"] = {
        "prod": list(project.get("dependencies", [])),
        "dev": [d for group in optional.values() for d in group],
    }
    scripts = project.get("scripts", {})
    analysis["entry_points"].extend(f"{k} = {v}" for k, v in scripts.items())


def _package_json(path: str, analysis: Dict[str, Any]) -> None:
    with open(path, "r", encoding="utf-8") as f:
        pkg = json.load(f)
    analysis["dependencies"] = {
        "prod": sorted(pkg.get("dependencies") or {}),
        "dev": sorted(pkg.get("devDependencies") or {}),
    }
    analysis["entry_points"].append(pkg.get("main") or "index.js")
    test_cmd = (pkg.get("scripts") or {}).get("test")
    if test_cmd:
        analysis["test_command"] = test_cmd


def _dependencies(root: str, marker: str, analysis: Dict[str, Any]) -> None:
    path = os.path.join(root, marker)
    try:
        if marker == "package.json":
            _package_json(path, analysis)
        elif marker == "pyproject.toml":
            _pyproject(path, analysis)
        elif os.path.exists(os.path.join(root, "requirements.txt")):
            analysis["dependencies"] = _requirements(os.path.join(root, "requirements.txt"))
    except (OSError, ValueError, TOMLKitError) as e:
        logger.warning("could not read dependencies from %s: %s", marker, e)


def analyze_project(resolver: PathResolver,
                    max_depth: int = 3,
                    include_dependencies: bool = True,
                    include_git_info: bool = True,
                    git: Optional[GitClient] = None) -> Dict[str, Any]:
    root = resolver.root
    analysis: Dict[str, Any] = {
        "project_type": "unknown",
        "root_path": root,
        "structure": {},
        "entry_points": [],
        "test_files": [],
        "config_files": [],
        "dependencies": None,
        "git_info": None,
    }

    top = set(os.listdir(root))
    marker = next((m for m, _ in PROJECT_MARKERS if m in top), None)
    if marker:
        analysis["project_type"] = dict(PROJECT_MARKERS)[marker]
        if include_dependencies:
            _dependencies(root, marker, analysis)

    def walk(directory: str, depth: int) -> Optional[Dict[str, Any]]:
        if depth > max_depth:
            return None
        structure: Dict[str, Any] = {}
        for entry in sorted(os.scandir(directory), key=lambda e: e.name):
            if entry.name.startswith(".") or entry.name in SKIP_DIRS:
                continue
            if entry.is_dir(follow_symlinks=False):
                structure[entry.name + "/"] = walk(entry.path, depth + 1)
                continue
            structure[entry.name] = "file"
            rel = resolver.relative(entry.path)
            if _TEST_FILE.search(entry.name):
                analysis["test_files"].append(rel)
            if _CONFIG_FILE.match(entry.name):
                analysis["config_files"].append(rel)
            if not analysis["entry_points"] and _ENTRY_FILE.match(entry.name):
                analysis["entry_points"].append(rel)
        return structure

    analysis["structure"] = walk(root, 1)

    if include_git_info:
        git = git or GitClient(resolver)
        try:
            status = git.status()
            branches = git.branch()
            analysis["git_info"] = {
                "current_branch": branches["current"] or status["current"],
                "branches": branches["all"],
                "modified_files": len(status["modified"]),
                "untracked_files": len(status["not_added"]),
                "ahead": status["ahead"],
                "behind": status["behind"],
            }
        except CodeCraftError:
            analysis["git_info"] = {"initialized": False}

    return analysis
