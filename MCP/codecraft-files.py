#!/usr/bin/env python3
"""
CodeCraft MCP (stdio launcher)
==============================

Starts the codecraft tool server for Codex (FastMCP over stdio). Register it
with scripts/update_mcp_config.py.

Env/config:
- PROJECT_DIR=/path/to/project   sandbox root for every tool (default: cwd)
- SHELL_MODE=unsafe              allow any shell command (default: restricted)
- GITHUB_TOKEN=...               enables create_github_repo
- .env file in the working directory with the same KEY=VALUE lines
"""

import os
import sys

# Allow running from a checkout without installing the package.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from codecraft.server import main  # noqa: E402


if __name__ == "__main__":
    main()
