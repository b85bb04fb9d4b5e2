import pytest
from pathlib import Path

from codecraft.editor import FileEditor
from codecraft.paths import PathResolver
from codecraft.shell import CommandResult


@pytest.fixture
def resolver(tmp_path: Path) -> PathResolver:
    return PathResolver(str(tmp_path))


@pytest.fixture
def editor(resolver: PathResolver) -> FileEditor:
    return FileEditor(resolver)


class FakeRunner:
    """Records git invocations and replays canned results in order."""

    def __init__(self, *results: CommandResult):
        self.results = list(results)
        self.calls = []

    def __call__(self, argv, cwd, timeout=120, shell=False):
        self.calls.append(list(argv))
        if self.results:
            return self.results.pop(0)
        return CommandResult(0, "", "")


@pytest.fixture
def fake_runner():
    return FakeRunner
