"""Load `.env` overrides before any constant is read.

`python-dotenv` loads a `.env` file sitting at repository root *early* in the
application lifecycle so that :mod:`wavescope.utils.constant` and the ASR
dependencies pick up overrides such as ``DEFAULT_WINDOW_SIZE`` or
``PARAKEET_MODEL_NAME``.

Called from :mod:`wavescope.utils.constant` at import time:

    from wavescope.utils.env_loader import load_project_env
    load_project_env()

Repeated calls are cheap; the file is read once per process.
"""

from __future__ import annotations

import functools
import pathlib
from collections.abc import Callable
from typing import Any, Final

from dotenv import load_dotenv

_REPO_ROOT: Final[pathlib.Path] = pathlib.Path(__file__).resolve().parents[2]
_ENV_FILE: pathlib.Path = _REPO_ROOT / ".env"
LOAD_DOTENV: Callable[..., Any] = load_dotenv


@functools.lru_cache(maxsize=1)
def _load_once() -> bool:
    if not _ENV_FILE.exists():
        return False
    # Variables exported by the shell win over the file.
    LOAD_DOTENV(dotenv_path=_ENV_FILE, override=False)
    return True


def load_project_env(force: bool = False) -> bool:
    """Read the repository `.env` file into ``os.environ``.

    The file is read at most once per process unless ``force`` is given.
    Values already present in the environment win over the file.

    Args:
        force: Bypass the cache and read the file again.

    Returns:
        True if an env file was found and loaded.
    """
    if force:
        _load_once.cache_clear()
    return _load_once()


__all__ = [
    "load_project_env",
]
