import pytest

from codecraft.errors import CommandFailed, InvalidArgument, SecurityViolation
from codecraft.gitops import GitClient, parse_status
from codecraft.shell import CommandResult

PORCELAIN = """## main...origin/main [ahead 2, behind 1]
M  staged.py
 M changed.py
A  added.py
 D gone.py
R  old.py -> new.py
UU clash.py
?? untracked.txt
"""


def test_parse_status():
    status = parse_status(PORCELAIN)
    assert status["current"] == "main"
    assert status["tracking"] == "origin/main"
    assert (status["ahead"], status["behind"]) == (2, 1)
    assert status["staged"] == ["staged.py", "added.py", "old.py -> new.py"]
    assert status["modified"] == ["changed.py"]
    assert status["created"] == ["added.py"]
    assert status["deleted"] == ["gone.py"]
    assert status["renamed"] == ["old.py -> new.py"]
    assert status["conflicted"] == ["clash.py"]
    assert status["not_added"] == ["untracked.txt"]
    assert status["is_clean"] is False


def test_parse_status_clean_fresh_repo():
    status = parse_status("## No commits yet on main\n")
    assert status["current"] == "main"
    assert status["tracking"] is None
    assert status["is_clean"] is True


def test_status_runs_git_in_root(resolver, fake_runner):
    runner = fake_runner(CommandResult(0, "## dev\n", ""))
    result = GitClient(resolver, runner).status()
    assert runner.calls == [["git", "status", "--porcelain=v1", "--branch"]]
    assert result["success"] is True
    assert result["current"] == "dev"


def test_failure_becomes_command_failed(resolver, fake_runner):
    runner = fake_runner(CommandResult(128, "", "fatal: not a git repository"))
    with pytest.raises(CommandFailed) as exc:
        GitClient(resolver, runner).diff()
    assert exc.value.exit_code == 128
    assert "not a git repository" in exc.value.message
    envelope = exc.value.to_envelope("git_diff")
    assert envelope["kind"] == "CommandFailed"
    assert envelope["exit_code"] == 128


def test_add_resolves_paths_in_sandbox(resolver, fake_runner):
    runner = fake_runner()
    git = GitClient(resolver, runner)
    git.add(["src/a.py", "./b.py"])
    git.add()
    assert runner.calls == [["git", "add", "--", "src/a.py", "b.py"], ["git", "add", "--", "."]]
    with pytest.raises(SecurityViolation):
        git.add(["../outside"])


def test_commit(resolver, fake_runner):
    out = "[main 1a2b3c4] Fix parser\n 1 file changed, 2 insertions(+)\n"
    runner = fake_runner(CommandResult(0, out, ""))
    result = GitClient(resolver, runner).commit("Fix parser", all=True)
    assert runner.calls == [["git", "commit", "-a", "-m", "Fix parser"]]
    assert (result["branch"], result["commit"]) == ("main", "1a2b3c4")
    assert result["summary"] == "1 file changed, 2 insertions(+)"


def test_commit_root_commit_header(resolver, fake_runner):
    runner = fake_runner(CommandResult(0, "[main (root-commit) abc1234] init\n", ""))
    assert GitClient(resolver, runner).commit("init")["commit"] == "abc1234"


def test_commit_requires_message(resolver, fake_runner):
    runner = fake_runner()
    with pytest.raises(InvalidArgument):
        GitClient(resolver, runner).commit("  ")
    assert runner.calls == []


def test_branch_list_create_delete(resolver, fake_runner):
    runner = fake_runner(CommandResult(0, "  feature\n* main\n", ""))
    git = GitClient(resolver, runner)
    listed = git.branch()
    assert listed["current"] == "main"
    assert listed["all"] == ["feature", "main"]

    git.branch(create="topic")
    git.branch(delete="old")
    assert runner.calls[1:] == [["git", "checkout", "-b", "topic"], ["git", "branch", "-d", "old"]]
    with pytest.raises(InvalidArgument):
        git.branch(create="--force")


def test_checkout_branch_and_file(resolver, fake_runner):
    runner = fake_runner()
    git = GitClient(resolver, runner)
    git.checkout("dev")
    git.checkout("new", create=True)
    git.checkout(file="src/x.py")
    assert runner.calls == [
        ["git", "checkout", "dev"],
        ["git", "checkout", "-b", "new"],
        ["git", "checkout", "--", "src/x.py"],
    ]
    with pytest.raises(InvalidArgument):
        git.checkout()


def test_remote_operations(resolver, fake_runner):
    runner = fake_runner()
    git = GitClient(resolver, runner)
    git.pull()
    git.push("origin", "main", set_upstream=True)
    git.merge("feature", no_ff=True)
    assert runner.calls == [
        ["git", "pull", "origin"],
        ["git", "push", "-u", "origin", "main"],
        ["git", "merge", "--no-ff", "feature"],
    ]


def test_stash(resolver, fake_runner):
    runner = fake_runner(CommandResult(0, "", ""), CommandResult(0, "", ""),
                         CommandResult(0, "stash@{0}: WIP on main\n", ""))
    git = GitClient(resolver, runner)
    assert git.stash("push", "wip")["action"] == "pushed"
    assert git.stash("pop")["action"] == "popped"
    assert git.stash("list")["stashes"] == ["stash@{0}: WIP on main"]
    assert runner.calls[0] == ["git", "stash", "push", "-m", "wip"]
    with pytest.raises(InvalidArgument):
        git.stash("drop")


def test_log(resolver, fake_runner):
    sep = "\x1f"
    out = sep.join(["abc", "Ann", "ann@example.com", "2024-01-02T03:04:05+00:00", "msg one"]) + "\n"
    runner = fake_runner(CommandResult(0, out, ""), CommandResult(0, f"abc{sep}msg one\n", ""))
    git = GitClient(resolver, runner)
    (commit,) = git.log(max_count=1)["commits"]
    assert commit == {
        "hash": "abc",
        "author_name": "Ann",
        "author_email": "ann@example.com",
        "date": "2024-01-02T03:04:05+00:00",
        "message": "msg one",
    }
    assert git.log(oneline=True)["commits"] == [{"hash": "abc", "message": "msg one"}]
    assert "--max-count=1" in runner.calls[0]
    with pytest.raises(InvalidArgument):
        git.log(max_count=0)


def test_timeout_reported(resolver, fake_runner):
    runner = fake_runner(CommandResult(None, "", "", timed_out=True))
    with pytest.raises(CommandFailed) as exc:
        GitClient(resolver, runner).pull()
    assert "timed out" in exc.value.message
