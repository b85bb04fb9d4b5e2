#!/usr/bin/env python3
"""
MCP: codecraft
Sandboxed file editing, search, git and shell tools for coding agents
(FastMCP over stdio).

Tools exposed:
- create_or_overwrite_file, read_file_content, append_prepend_content
- smart_replace, insert_lines, delete_lines
- search_in_file, search_across_files, get_code_context
- list_directory, get_file_info, delete_file, move_or_rename_file
- execute_shell_command
- git_status, git_diff, git_add, git_commit, git_branch, git_checkout,
  git_pull, git_push, git_merge, git_stash, git_log
- create_github_repo, analyze_project

Every tool returns a dict; failures come back as
``{"error": true, "kind", "message", "operation"}``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from . import __version__
from .config import Settings, load_settings
from .editor import FileEditor
from .errors import CodeCraftError
from .github import create_github_repo as _create_github_repo
from .gitops import GitClient
from .log import init_logger
from .paths import PathResolver
from .project import analyze_project as _analyze_project
from .shell import execute_shell_command as _execute_shell_command

mcp = FastMCP("codecraft")

logger = logging.getLogger("codecraft.server")

_state: Dict[str, Any] = {}


def configure(settings: Settings) -> None:
    """Bind the tools to one sandbox root."""
    resolver = PathResolver(settings.project_dir)
    _state.update(
        settings=settings,
        resolver=resolver,
        editor=FileEditor(resolver),
        git=GitClient(resolver),
    )


def _get(name: str) -> Any:
    if not _state:
        configure(load_settings())
    return _state[name]


def _guard(operation: str, fn: Callable[..., Dict[str, Any]], *args: Any, **kwargs: Any) -> Dict[str, Any]:
    try:
        return fn(*args, **kwargs)
    except CodeCraftError as e:
        logger.info("%s failed: %s: %s", operation, e.kind, e.message)
        return e.to_envelope(operation)
    except Exception as e:
        logger.error("%s exception: %s", operation, e, exc_info=True)
        return {"error": True, "kind": "InternalError", "message": f"Unexpected error: {e}", "operation": operation}


# ----------------------------------
# File tools
# ----------------------------------
@mcp.tool()
async def create_or_overwrite_file(file_path: str, content: str) -> Dict[str, Any]:
    """Create a file (and parent directories) or replace its full content."""
    return _guard("create_or_overwrite_file", _get("editor").create_or_overwrite_file, file_path, content)


@mcp.tool()
async def smart_replace(file_path: str, old_code: str, new_code: str, match_mode: str = "smart") -> Dict[str, Any]:
    """Replace the first block matching old_code.

    match_mode: "exact" (literal substring only) or "smart"/"fuzzy" (literal
    first, then a line-by-line match that ignores indentation differences).
    """
    return _guard("smart_replace", _get("editor").smart_replace, file_path, old_code, new_code, match_mode)


@mcp.tool()
async def search_in_file(file_path: str,
                         search_text: str,
                         case_sensitive: bool = True,
                         use_regex: bool = False,
                         context_lines: int = 0) -> Dict[str, Any]:
    """All lines matching search_text, with line numbers and optional context."""
    return _guard("search_in_file", _get("editor").search_in_file,
                  file_path, search_text, case_sensitive, use_regex, context_lines)


@mcp.tool()
async def get_code_context(file_path: str, line_number: int, context_lines: int = 5) -> Dict[str, Any]:
    """Numbered lines around a 1-based line number."""
    return _guard("get_code_context", _get("editor").get_code_context, file_path, line_number, context_lines)


@mcp.tool()
async def delete_lines(file_path: str, start_line: int, end_line: int) -> Dict[str, Any]:
    """Delete an inclusive 1-based line range."""
    return _guard("delete_lines", _get("editor").delete_lines, file_path, start_line, end_line)


@mcp.tool()
async def insert_lines(file_path: str,
                       content: str,
                       position: Dict[str, Any],
                       match_occurrence: int = 1,
                       create_if_missing: bool = False,
                       preserve_indentation: bool = True) -> Dict[str, Any]:
    """Insert content at a position.

    position takes exactly one of:
    - {"line_number": 10, "insert_mode": "after"|"before"}
    - {"after_pattern": "def setup("} / {"before_pattern": "return"}
      (match_occurrence picks the n-th matching line)
    - {"relative_to": {"pattern": "class Foo", "offset": 2}} (first match)
    """
    return _guard("insert_lines", _get("editor").insert_lines,
                  file_path, content, position, match_occurrence, create_if_missing, preserve_indentation)


@mcp.tool()
async def read_file_content(file_path: str) -> Dict[str, Any]:
    return _guard("read_file_content", _get("editor").read_file_content, file_path)


@mcp.tool()
async def list_directory(dir_path: str = ".",
                         filter: Optional[str] = None,
                         include_hidden: bool = False,
                         max_depth: int = 1,
                         max_files: int = 100) -> Dict[str, Any]:
    """List directory entries; filter is a glob on entry names, e.g. "*.py"."""
    return _guard("list_directory", _get("editor").list_directory,
                  dir_path, filter, include_hidden, max_depth, max_files)


@mcp.tool()
async def delete_file(file_path: str) -> Dict[str, Any]:
    return _guard("delete_file", _get("editor").delete_file, file_path)


@mcp.tool()
async def move_or_rename_file(source_path: str, destination_path: str) -> Dict[str, Any]:
    return _guard("move_or_rename_file", _get("editor").move_or_rename_file, source_path, destination_path)


@mcp.tool()
async def append_prepend_content(file_path: str,
                                 content: str,
                                 position: str,
                                 create_if_missing: bool = False) -> Dict[str, Any]:
    """Add content at the start ("prepend") or end ("append") of a file."""
    return _guard("append_prepend_content", _get("editor").append_prepend_content,
                  file_path, content, position, create_if_missing)


@mcp.tool()
async def search_across_files(search_text: str,
                              file_pattern: str = "*",
                              case_sensitive: bool = True,
                              use_regex: bool = False,
                              max_files: int = 100,
                              max_matches_per_file: int = 10,
                              context_lines: int = 0) -> Dict[str, Any]:
    """Search every file matching file_pattern (glob, "**" recurses) under the project root."""
    return _guard("search_across_files", _get("editor").search_across_files,
                  search_text, file_pattern, case_sensitive, use_regex,
                  max_files, max_matches_per_file, context_lines)


@mcp.tool()
async def get_file_info(file_path: Optional[str] = None,
                        file_paths: Optional[List[str]] = None,
                        include_line_count: bool = False) -> Dict[str, Any]:
    return _guard("get_file_info", _get("editor").get_file_info, file_path, file_paths, include_line_count)


# ----------------------------------
# Shell
# ----------------------------------
@mcp.tool()
async def execute_shell_command(command: str, working_dir: str = ".", timeout_seconds: int = 120) -> Dict[str, Any]:
    """Run a command in the project. Restricted mode only allows common build/test tools."""
    def run() -> Dict[str, Any]:
        cwd = _get("resolver").resolve(working_dir)
        result = _execute_shell_command(command, cwd, timeout_seconds, _get("settings").unsafe_shell)
        result["working_dir"] = working_dir
        return result
    return _guard("execute_shell_command", run)


# ----------------------------------
# Git
# ----------------------------------
@mcp.tool()
async def git_status() -> Dict[str, Any]:
    return _guard("git_status", _get("git").status)


@mcp.tool()
async def git_diff(staged: bool = False) -> Dict[str, Any]:
    return _guard("git_diff", _get("git").diff, staged)


@mcp.tool()
async def git_add(files: Optional[List[str]] = None) -> Dict[str, Any]:
    return _guard("git_add", _get("git").add, files)


@mcp.tool()
async def git_commit(message: str, all: bool = False) -> Dict[str, Any]:
    """Commit staged changes; all=true stages tracked modifications first."""
    return _guard("git_commit", _get("git").commit, message, all)


@mcp.tool()
async def git_branch(create: Optional[str] = None, delete: Optional[str] = None, list: bool = True) -> Dict[str, Any]:
    return _guard("git_branch", _get("git").branch, create, delete, list)


@mcp.tool()
async def git_checkout(branch: Optional[str] = None, create: bool = False, file: Optional[str] = None) -> Dict[str, Any]:
    """Switch branch, or restore a single file when file is given."""
    return _guard("git_checkout", _get("git").checkout, branch, create, file)


@mcp.tool()
async def git_pull(remote: str = "origin", branch: Optional[str] = None) -> Dict[str, Any]:
    return _guard("git_pull", _get("git").pull, remote, branch)


@mcp.tool()
async def git_push(remote: str = "origin", branch: Optional[str] = None, set_upstream: bool = False) -> Dict[str, Any]:
    return _guard("git_push", _get("git").push, remote, branch, set_upstream)


@mcp.tool()
async def git_merge(branch: str, no_ff: bool = False) -> Dict[str, Any]:
    return _guard("git_merge", _get("git").merge, branch, no_ff)


@mcp.tool()
async def git_stash(action: str = "push", message: Optional[str] = None) -> Dict[str, Any]:
    """action: push | pop | list"""
    return _guard("git_stash", _get("git").stash, action, message)


@mcp.tool()
async def git_log(max_count: int = 10, oneline: bool = False) -> Dict[str, Any]:
    return _guard("git_log", _get("git").log, max_count, oneline)


# ----------------------------------
# GitHub / project
# ----------------------------------
@mcp.tool()
async def create_github_repo(repo_name: str, description: Optional[str] = None, is_private: bool = False) -> Dict[str, Any]:
    """Create a repository for the authenticated user (needs GITHUB_TOKEN)."""
    try:
        return await _create_github_repo(_get("settings").github_token, repo_name, description, is_private)
    except CodeCraftError as e:
        logger.info("create_github_repo failed: %s: %s", e.kind, e.message)
        return e.to_envelope("create_github_repo")
    except Exception as e:
        logger.error("create_github_repo exception: %s", e, exc_info=True)
        return {"error": True, "kind": "InternalError", "message": f"Unexpected error: {e}",
                "operation": "create_github_repo"}


@mcp.tool()
async def analyze_project(max_depth: int = 3,
                          include_dependencies: bool = True,
                          include_git_info: bool = True) -> Dict[str, Any]:
    """Project type, dependencies, structure, entry points, tests and git state."""
    return _guard("analyze_project", _analyze_project, _get("resolver"), max_depth,
                  include_dependencies, include_git_info, _get("git"))


# ----------------------------------
# Entrypoint
# ----------------------------------
def main() -> None:
    settings = load_settings()
    log = init_logger(settings.log_dir, settings.log_level)
    configure(settings)
    log.info("codecraft v%s; project_dir=%s; shell_mode=%s; github_token=%s",
             __version__, settings.project_dir, settings.shell_mode,
             "configured" if settings.github_token else "not configured")
    try:
        mcp.run(transport="stdio")
    except Exception as e:
        log.critical("Failed to start MCP server: %s", e, exc_info=True)
        raise


if __name__ == "__main__":
    main()
