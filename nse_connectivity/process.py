"""Run external commands and scripts to completion."""

import logging
import os
import subprocess
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def run_command(cmd: List[str], cwd=None, env: Optional[Dict[str, str]] = None) -> bool:
    """Run a command and report whether it exited zero."""
    logger.debug("Running: %s", " ".join(cmd))

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=env or os.environ.copy(),
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        logger.error("Command not found: %s", e)
        return False

    if result.returncode != 0:
        logger.warning(
            "Command %s exited %d: %s", cmd[0], result.returncode, (result.stderr or "").strip()
        )
    return result.returncode == 0


def run_script(script: str, env_vars: Optional[Dict[str, str]] = None) -> bool:
    """Run a shell command line through bash, with extra environment variables.

    The caller's environment is copied, never mutated.
    """
    env = os.environ.copy()
    if env_vars:
        env.update(env_vars)

    logger.info("Executing script: %s", script)
    return run_command(["bash", "-c", script], env=env)
