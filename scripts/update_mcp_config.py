#!/usr/bin/env python3
"""Register MCP server scripts (codecraft-files.py and friends) in a Codex config.toml.

Usage:
    update_mcp_config.py <config-path> <python-cmd> <script1> [script2...]
                         [--env KEY=VALUE ...] [--mcp-dir DIR]

``--env`` entries (e.g. ``PROJECT_DIR=/workspace``) are written to an
``env`` table on every registered server. Existing keys and comments in the
config are preserved.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Tuple

import tomlkit

DEFAULT_MCP_DIR = "/opt/codex-home/mcp"


def ensure_table(doc: tomlkit.TOMLDocument, key: str) -> tomlkit.items.Table:
    """Return an existing table or create a new mutable table."""
    table = doc.get(key)
    if table is None:
        table = tomlkit.table()
        doc[key] = table
    return table


def env_pair(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    key, val = value.split("=", 1)
    return key.strip(), val


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="update_mcp_config.py",
        description="Register MCP server scripts in a Codex config.toml.",
    )
    parser.add_argument("config_path", type=Path)
    parser.add_argument("python_cmd")
    parser.add_argument("scripts", nargs="+", metavar="script")
    parser.add_argument("--env", action="append", type=env_pair, default=[], metavar="KEY=VALUE",
                        help="environment entry for every registered server (repeatable)")
    parser.add_argument("--mcp-dir", default=DEFAULT_MCP_DIR,
                        help=f"directory holding the scripts (default: {DEFAULT_MCP_DIR})")
    return parser


def register_servers(doc: tomlkit.TOMLDocument, python_cmd: str, script_names: List[str],
                     env: Dict[str, str], mcp_dir: str = DEFAULT_MCP_DIR) -> None:
    mcp_table = ensure_table(doc, "mcp_servers")
    for filename in script_names:
        name = Path(filename).stem
        table = tomlkit.table()
        table.add("command", python_cmd)
        table.add("args", ["-u", f"{mcp_dir}/{filename}"])
        if env:
            env_table = tomlkit.table()
            for key, value in env.items():
                env_table.add(key, value)
            table.add("env", env_table)
        mcp_table[name] = table


def main(argv: list[str]) -> int:
    args = build_parser().parse_args(argv[1:])
    config_path: Path = args.config_path

    config_path.parent.mkdir(parents=True, exist_ok=True)
    if config_path.exists():
        doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
    else:
        doc = tomlkit.document()

    register_servers(doc, args.python_cmd, args.scripts, dict(args.env), args.mcp_dir.rstrip("/"))

    config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
