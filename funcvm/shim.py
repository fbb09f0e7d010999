"""
The ``func`` shim.

Forwards the full command line to the binary of the active version and
exits with its exit code.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, Mapping

from .activation import VERSION_ENV_VAR, effective_version
from .common import is_debug_enabled
from .config import load_config
from .environment import SHIM_PROBE_ANSWER, SHIM_PROBE_FLAG
from .errors import FuncvmError, NotInitializedError, NotInstalledError
from .logging_config import setup_logging
from .platforms import detect_platform
from .store import VersionStore

logger = logging.getLogger(__name__)


def spawn(binary: Path, args: list[str]) -> int:
    """Run ``binary`` with inherited stdio and return its exit code."""
    return subprocess.run([str(binary), *args], check=False).returncode


def resolve_binary(
    store: VersionStore,
    env: Mapping[str, str],
    working_dir: Path,
) -> tuple[str, Path]:
    """
    Locate the binary of the active version.

    Returns:
        Tuple of (version, binary_path)

    Raises:
        NotInitializedError: If no version source is set
        NotInstalledError: If the active version has no binary in the cache
    """
    active = effective_version(env, working_dir, store)
    if active is None:
        raise NotInitializedError(
            "funcvm not initialized.",
            f"Run 'funcvm use <version>' or set {VERSION_ENV_VAR}. See 'funcvm help'.",
        )

    binary = store.binary_path(active.version)
    if not store.is_installed(active.version) or not binary.exists():
        raise NotInstalledError(
            f"func binary not found at {binary} (version {active.version} from {active.source}).",
            f"Try running 'funcvm use {active.version}' to repair.",
        )
    return active.version, binary


def dispatch(
    args: list[str],
    store: VersionStore,
    env: Mapping[str, str],
    working_dir: Path,
    runner: Callable[[Path, list[str]], int] = spawn,
) -> int:
    """Forward ``args`` to the active binary and return its exit code."""
    version, binary = resolve_binary(store, env, working_dir)
    logger.debug(f"Dispatching to {binary} ({version})")
    return runner(binary, args)


def main(
    argv: list[str] | None = None,
    env: Mapping[str, str] | None = None,
    working_dir: Path | None = None,
    runner: Callable[[Path, list[str]], int] = spawn,
) -> int:
    """Shim entry point. Returns the process exit code."""
    if argv is None:
        argv = sys.argv[1:]
    if env is None:
        env = dict(os.environ)
    if working_dir is None:
        working_dir = Path.cwd()

    if argv[:1] == [SHIM_PROBE_FLAG]:
        print(SHIM_PROBE_ANSWER)
        return 0

    setup_logging(level="WARNING", verbose=is_debug_enabled())

    try:
        config = load_config(environ=dict(env), working_dir=working_dir)
        platform = detect_platform()
        store = VersionStore(config.download_dir, executable_name=platform.executable_name)
        return dispatch(argv, store, env, working_dir, runner=runner)
    except FuncvmError as e:
        logger.error(e.format())
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
