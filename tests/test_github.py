import aiohttp
import pytest

from codecraft.errors import CommandFailed, InvalidArgument, NotConfigured
from codecraft.github import create_github_repo


class FakeResponse:
    def __init__(self, status, data):
        self.status = status
        self._data = data

    async def json(self, content_type="application/json"):
        return self._data

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.requests.append({"url": url, "json": json, "headers": headers})
        if self.error:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_creates_repo():
    session = FakeSession(FakeResponse(201, {
        "full_name": "me/tool",
        "html_url": "https://github.com/me/tool",
        "ssh_url": "git@github.com:me/tool.git",
        "clone_url": "https://github.com/me/tool.git",
    }))
    result = await create_github_repo("tok", "tool", "A tool", True, session=session,
                                      api_url="https://api.test")
    assert result["success"] is True
    assert result["url"] == "https://github.com/me/tool"
    (req,) = session.requests
    assert req["url"] == "https://api.test/user/repos"
    assert req["json"] == {"name": "tool", "private": True, "description": "A tool"}
    assert req["headers"]["Authorization"] == "Bearer tok"
    # caller-owned sessions stay open
    assert session.closed is False


@pytest.mark.asyncio
async def test_missing_token():
    with pytest.raises(NotConfigured):
        await create_github_repo("", "tool", session=FakeSession())


@pytest.mark.asyncio
async def test_empty_name():
    with pytest.raises(InvalidArgument):
        await create_github_repo("tok", " ", session=FakeSession())


@pytest.mark.asyncio
async def test_api_error_status():
    session = FakeSession(FakeResponse(422, {"message": "name already exists on this account"}))
    with pytest.raises(CommandFailed) as exc:
        await create_github_repo("tok", "tool", session=session)
    assert exc.value.exit_code == 422
    assert "already exists" in exc.value.message


@pytest.mark.asyncio
async def test_network_error():
    session = FakeSession(error=aiohttp.ClientConnectionError("refused"))
    with pytest.raises(CommandFailed):
        await create_github_repo("tok", "tool", session=session)
