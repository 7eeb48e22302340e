import os
import sys
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "scratch_root": "/tmp/civet",
    "canonical_host": "github.com",
    "default_branch": "master",  # used when the event repo does not name its default branch
    "format_label": "black",
    "line_length": 88,
    "analysis_command": [sys.executable, "-m", "pyflakes", "."],
    "install_command": None,  # e.g. ["python", "-m", "pip", "install", "-e", "."]
    "build_command": [sys.executable, "-m", "compileall", "-q", "."],
    "test_command": [sys.executable, "-m", "pytest", "-q", "--cov=."],
    "test_ok_statuses": [0, 5],  # pytest exits 5 when no tests were collected
    "gate_on_findings": False,
    "close_on_failure": True,
    "bot_user": None,
    "jobs": 4,
}

_LIST_KEYS = ("analysis_command", "build_command", "test_command", "test_ok_statuses")


def load_config(config_path: str = ".civet.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .civet.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)
    for key in _LIST_KEYS:
        config[key] = list(DEFAULT_CONFIG[key])

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    if not config.get("bot_user"):
        config["bot_user"] = os.environ.get("CIVET_BOT_USER") or None

    return config
