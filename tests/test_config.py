import dataclasses
import logging
import os

import pytest

from codecraft.config import DEFAULT_LOG_DIR, Settings, load_settings
from codecraft.log import init_logger


def test_defaults(tmp_path):
    settings = load_settings(env={"PROJECT_DIR": str(tmp_path)}, env_file=str(tmp_path / "none.env"))
    assert settings.project_dir == os.path.realpath(str(tmp_path))
    assert settings.shell_mode == "restricted"
    assert settings.unsafe_shell is False
    assert settings.github_token == ""
    assert settings.log_dir == DEFAULT_LOG_DIR
    assert settings.log_level == "INFO"


def test_env_file_is_overridden_by_environment(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# local settings\n"
        "export GITHUB_TOKEN=\"from-file\"\n"
        "SHELL_MODE=unsafe\n"
        "CODECRAFT_LOG_LEVEL=debug\n"
    )
    settings = load_settings(env={"PROJECT_DIR": str(tmp_path), "GITHUB_TOKEN": "from-env"},
                             env_file=str(env_file))
    assert settings.github_token == "from-env"
    assert settings.unsafe_shell is True
    assert settings.log_level == "DEBUG"


def test_unknown_shell_mode_falls_back(tmp_path):
    settings = load_settings(env={"PROJECT_DIR": str(tmp_path), "SHELL_MODE": "yolo"},
                             env_file=str(tmp_path / "none.env"))
    assert settings.shell_mode == "restricted"


def test_env_file_quoting_and_comments(tmp_path):
    env_file = tmp_path / "x.env"
    env_file.write_text(
        f"PROJECT_DIR='{tmp_path}'\n"
        "\n"
        "#SHELL_MODE=unsafe\n"
        "GITHUB_TOKEN=spaced  # trailing comment\n"
        "CODECRAFT_LOG_DIR\n"
    )
    settings = load_settings(env={}, env_file=str(env_file))
    assert settings.project_dir == os.path.realpath(str(tmp_path))
    assert settings.shell_mode == "restricted"
    assert settings.github_token == "spaced"
    assert settings.log_dir == DEFAULT_LOG_DIR


def test_settings_is_frozen(tmp_path):
    settings = Settings(project_dir=str(tmp_path))
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.shell_mode = "unsafe"


def test_init_logger_writes_file_once(tmp_path):
    logger = init_logger(str(tmp_path / "logs"), "debug")
    try:
        init_logger(str(tmp_path / "logs"), "debug")
        handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)
                    and h.baseFilename == str(tmp_path / "logs" / "codecraft.log")]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG
        logging.getLogger("codecraft.editor").info("child message")
        handlers[0].flush()
        text = (tmp_path / "logs" / "codecraft.log").read_text()
        assert "codecraft MCP starting" in text
        assert "child message" in text
    finally:
        for h in list(logger.handlers):
            if isinstance(h, logging.FileHandler):
                logger.removeHandler(h)
                h.close()
        logger.setLevel(logging.NOTSET)
