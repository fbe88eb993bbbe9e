"""Runtime settings, read from the environment and overridable from the command line."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import os
import pathlib
from typing import Mapping, NamedTuple

DEFAULT_SERVER = "http://localhost:5000"
DEFAULT_TIMEOUT = 10.0


class Settings(NamedTuple):
    server: str = DEFAULT_SERVER
    key_dir: pathlib.Path = pathlib.Path(".")
    timeout: float = DEFAULT_TIMEOUT


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build settings from `RSAMESSENGER_SERVER`, `RSAMESSENGER_KEY_DIR` and `RSAMESSENGER_TIMEOUT`.

    Args:
        env: Mapping to read from. Defaults to `os.environ`.

    Returns:
        The settings, with defaults for every unset variable.

    Raises:
        ValueError: If `RSAMESSENGER_TIMEOUT` is not a positive number.
    """
    if env is None:
        env = os.environ
    timeout = float(env.get("RSAMESSENGER_TIMEOUT", DEFAULT_TIMEOUT))
    if timeout <= 0:
        raise ValueError("RSAMESSENGER_TIMEOUT must be > 0")
    return Settings(
        server=env.get("RSAMESSENGER_SERVER", DEFAULT_SERVER),
        key_dir=pathlib.Path(env.get("RSAMESSENGER_KEY_DIR", ".")),
        timeout=timeout,
    )
