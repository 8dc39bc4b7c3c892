from __future__ import annotations

import os
from pathlib import Path

APP_ENV_CONFIG = "AGENDA_CONFIG_FILE"


def package_dir() -> Path:
    """Directory of the installed agenda package. Ships agenda.yaml."""
    return Path(__file__).parent.resolve()


def config_file() -> Path:
    """
    Path of the agenda YAML config.

    Resolution order:
    1. AGENDA_CONFIG_FILE env var (explicit override)
    2. agenda.yaml packaged with agenda/
    """
    if os.environ.get(APP_ENV_CONFIG):
        return Path(os.environ[APP_ENV_CONFIG]).expanduser().resolve()
    return package_dir() / "agenda.yaml"
