import importlib.util
from pathlib import Path

import pytest
import tomlkit

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "update_mcp_config.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("update_mcp_config", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_registers_server_with_env(script, tmp_path):
    config = tmp_path / "codex" / "config.toml"
    rc = script.main(["prog", str(config), "python3", "codecraft-files.py",
                      "--env", "PROJECT_DIR=/workspace", "--env", "SHELL_MODE=unsafe",
                      "--mcp-dir", "/srv/mcp/"])
    assert rc == 0
    doc = tomlkit.parse(config.read_text()).unwrap()
    assert doc["mcp_servers"]["codecraft-files"] == {
        "command": "python3",
        "args": ["-u", "/srv/mcp/codecraft-files.py"],
        "env": {"PROJECT_DIR": "/workspace", "SHELL_MODE": "unsafe"},
    }


def test_keeps_existing_config(script, tmp_path):
    config = tmp_path / "config.toml"
    config.write_text('# my settings\nmodel = "gpt"\n\n[mcp_servers.other]\ncommand = "node"\n')
    assert script.main(["prog", str(config), "python3", "codecraft-files.py"]) == 0
    text = config.read_text()
    assert "# my settings" in text
    doc = tomlkit.parse(text).unwrap()
    assert doc["model"] == "gpt"
    assert set(doc["mcp_servers"]) == {"other", "codecraft-files"}
    assert "env" not in doc["mcp_servers"]["codecraft-files"]


@pytest.mark.parametrize("argv", [
    ["prog", "config.toml", "python3"],
    ["prog", "config.toml", "python3", "x.py", "--env"],
    ["prog", "config.toml", "python3", "x.py", "--env", "NOEQUALS"],
])
def test_usage_errors(script, argv, capsys):
    with pytest.raises(SystemExit) as exc:
        script.main(argv)
    assert exc.value.code == 2
    assert "usage:" in capsys.readouterr().err


def test_env_pair_keeps_equals_in_value(script):
    assert script.env_pair(" KEY =a=b") == ("KEY", "a=b")
