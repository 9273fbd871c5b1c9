"""Cross-platform path management for authsession.

All persistent file locations are defined here.  Directory creation is
deferred to helpers rather than happening at import time, keeping imports
side-effect-free.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from platformdirs import user_config_dir

APP_NAME = "authsession"

CONFIG_DIR: Path = Path(user_config_dir(APP_NAME))

SETTINGS_FILE = CONFIG_DIR / "settings.json"


def ensure_parents(path: Path) -> Path:
    """Create all parent directories for *path* if they do not exist.

    Returns *path* unchanged so the call can be used inline.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass
    return path


def atomic_write(path: Path, data: Union[str, bytes]) -> None:
    """Write text *data* to *path* atomically (write-to-tmp then replace)."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    ensure_parents(tmp)

    with tmp.open("w", encoding="utf-8") as fh:
        fh.write(data.decode() if isinstance(data, bytes) else data)

    try:
        os.replace(tmp, path)
    finally:
        # Clean up an orphaned tmp file if the replace failed.
        try:
            if tmp.exists():
                tmp.unlink()
        except OSError:
            pass
