"""
Active version arbitration.

Precedence is strict: environment variable, then the pin file in the
working directory, then the global pin file. The first source with a value
wins; nothing is validated against the cache here.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .store import VersionStore

VERSION_ENV_VAR = "FUNCVM_CORE_TOOLS_VERSION"

SOURCE_ENV = "env"
SOURCE_LOCAL = "local"
SOURCE_GLOBAL = "global"


@dataclass(frozen=True)
class ActiveVersion:
    """Version chosen for dispatch and the source that supplied it."""
    version: str
    source: str

    def __str__(self) -> str:
        return f"{self.version} ({self.source})"


def pinned_versions(
    env: Mapping[str, str],
    working_dir: Path | str,
    store: VersionStore,
) -> dict[str, str | None]:
    """
    Read every version source without applying precedence.

    Returns:
        Mapping of source name to its value (None when unset), in precedence order
    """
    return {
        SOURCE_ENV: env.get(VERSION_ENV_VAR) or None,
        SOURCE_LOCAL: store.read_local_pin(working_dir),
        SOURCE_GLOBAL: store.read_global_pin(),
    }


def effective_version(
    env: Mapping[str, str],
    working_dir: Path | str,
    store: VersionStore,
) -> ActiveVersion | None:
    """
    Determine the single version a dispatch should use.

    Args:
        env: Process environment mapping
        working_dir: Directory searched for a local pin file
        store: Version store holding the global pin

    Returns:
        ActiveVersion, or None when no source is set
    """
    # Env value is taken verbatim; pin files are already trimmed by the store
    env_value = env.get(VERSION_ENV_VAR)
    if env_value:
        return ActiveVersion(env_value, SOURCE_ENV)

    local = store.read_local_pin(working_dir)
    if local:
        return ActiveVersion(local, SOURCE_LOCAL)

    global_pin = store.read_global_pin()
    if global_pin:
        return ActiveVersion(global_pin, SOURCE_GLOBAL)

    return None


def version_sources(
    version: str,
    env: Mapping[str, str],
    working_dir: Path | str,
    store: VersionStore,
) -> list[str]:
    """Names of the sources whose value equals ``version``."""
    return [
        source for source, value in pinned_versions(env, working_dir, store).items()
        if value == version
    ]
