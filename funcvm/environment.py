"""
Environment validation.

Warns when a Core Tools installation other than the funcvm shim already
provides ``func`` on PATH, since it would shadow or be shadowed by the shim.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)

SHIM_PROBE_FLAG = "--is-funcvm"
SHIM_PROBE_ANSWER = "yes"


def is_funcvm_shim(executable: str, timeout: int = 10) -> bool:
    """
    Ask an executable whether it is the funcvm shim.

    Args:
        executable: Path to the ``func`` found on PATH
        timeout: Seconds to wait for an answer

    Returns:
        True if it answered the probe with "yes"
    """
    try:
        result = subprocess.run(
            [executable, SHIM_PROBE_FLAG],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Probe of {executable} failed: {e}")
        return False
    return result.stdout.strip() == SHIM_PROBE_ANSWER


def validate_environment(which=shutil.which) -> bool:
    """
    Check for a conflicting Core Tools installation.

    Probing problems only ever produce a warning.

    Args:
        which: PATH lookup function

    Returns:
        True if no conflicting ``func`` was found
    """
    logger.info("Validating environment...")

    existing = which("func")
    if not existing:
        return True

    if is_funcvm_shim(existing):
        logger.debug(f"{existing} is the funcvm shim")
        return True

    logger.warning(
        f"Azure Functions Core Tools appears to be installed already ({existing}). "
        "It's highly recommended that you uninstall it before using funcvm."
    )
    return False
