"""
Runtime configuration.

Env/config:
- PROJECT_DIR           sandbox root (default: current directory)
- SHELL_MODE            "restricted" (default) or "unsafe"
- GITHUB_TOKEN          token used by create_github_repo
- CODECRAFT_LOG_DIR     directory for codecraft.log
- CODECRAFT_LOG_LEVEL   logger level (default INFO)

A ``.env`` file in the working directory with KEY=VALUE lines fills in
anything the environment does not set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

SHELL_MODES = ("restricted", "unsafe")

DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")


@dataclass(frozen=True)
class Settings:
    project_dir: str
    shell_mode: str = "restricted"
    github_token: str = ""
    log_dir: str = DEFAULT_LOG_DIR
    log_level: str = "INFO"

    @property
    def unsafe_shell(self) -> bool:
        return self.shell_mode == "unsafe"


def load_settings(env: Optional[Mapping[str, str]] = None,
                  env_file: Optional[str] = None) -> Settings:
    file_values = dotenv_values(env_file or os.path.join(os.getcwd(), ".env"))
    # keys without a value parse as None
    merged: Dict[str, str] = {k: v for k, v in file_values.items() if v is not None}
    merged.update(os.environ if env is None else env)

    shell_mode = (merged.get("SHELL_MODE") or "restricted").strip().lower()
    if shell_mode not in SHELL_MODES:
        shell_mode = "restricted"

    project_dir = merged.get("PROJECT_DIR") or os.getcwd()
    return Settings(
        project_dir=os.path.realpath(os.path.expanduser(project_dir)),
        shell_mode=shell_mode,
        github_token=(merged.get("GITHUB_TOKEN") or "").strip(),
        log_dir=merged.get("CODECRAFT_LOG_DIR") or DEFAULT_LOG_DIR,
        log_level=(merged.get("CODECRAFT_LOG_LEVEL") or "INFO").upper(),
    )
