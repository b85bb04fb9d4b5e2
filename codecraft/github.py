"""
GitHub repository creation over the REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aiohttp

from .errors import CommandFailed, InvalidArgument, NotConfigured

logger = logging.getLogger("codecraft.github")

GITHUB_API_URL = "https://api.github.com"


async def create_github_repo(token: str,
                             repo_name: str,
                             description: Optional[str] = None,
                             is_private: bool = False,
                             session: Optional[aiohttp.ClientSession] = None,
                             api_url: str = GITHUB_API_URL) -> Dict[str, Any]:
    if not token:
        raise NotConfigured("GITHUB_TOKEN not configured in environment or .env file")
    if not repo_name or not repo_name.strip():
        raise InvalidArgument("repo_name must not be empty")

    payload: Dict[str, Any] = {"name": repo_name, "private": bool(is_private)}
    if description:
        payload["description"] = description
    headers = {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    own_session = session is None
    if own_session:
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))
    try:
        async with session.post(f"{api_url}/user/repos", json=payload, headers=headers) as resp:
            data = await resp.json(content_type=None)
            if resp.status != 201:
                message = data.get("message") if isinstance(data, dict) else None
                logger.warning("GitHub repo creation failed (%s): %s", resp.status, message)
                raise CommandFailed(f"GitHub API error {resp.status}: {message or 'unknown error'}",
                                    exit_code=resp.status)
    except aiohttp.ClientError as e:
        raise CommandFailed(f"GitHub API request failed: {e}") from e
    finally:
        if own_session:
            await session.close()

    logger.info("created GitHub repo %s", data.get("full_name", repo_name))
    return {
        "success": True,
        "repo_name": repo_name,
        "url": data.get("html_url"),
        "ssh_url": data.get("ssh_url"),
        "clone_url": data.get("clone_url"),
    }
