import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
COMMAND_NOT_FOUND = 127


class BuildStepError(RuntimeError):
    """An external build step exited unsuccessfully.

    Attributes:
        label: Step label used in log messages (e.g. "Configure", "Merge")
        cmd: Command line that was run
        returncode: Exit status of the step, used as the process exit status
    """

    def __init__(self, label: str, cmd: List[str], returncode: int, message: str):
        super().__init__(message)
        self.label = label
        self.cmd = cmd
        self.returncode = returncode


def run_step(
    cmd: List[str],
    label: str,
    cwd: Optional[Union[str, Path]] = None,
    error_hint: str = "Executable not found",
) -> None:
    """Run one external step to completion with standardized logging and error handling.

    The step inherits stdout and stderr, so whatever it prints reaches the
    user unmodified. The call blocks until the step exits; no timeout is set.

    Args:
        cmd: Command and arguments
        label: Label for log messages (e.g., "Configure", "Compile")
        cwd: Working directory for the step
        error_hint: Message used when the executable cannot be found

    Raises:
        BuildStepError: If the step exits non-zero or cannot be launched
    """
    logger.info(f"[{label}] Running {cmd[0]}...")
    logger.debug(f"  Working directory: {cwd or Path.cwd()}")
    logger.debug(f"  Command: {' '.join(str(c) for c in cmd)}")

    try:
        result = subprocess.run(cmd, cwd=cwd, check=False)
    except FileNotFoundError:
        logger.error(f"[{label}] {error_hint}")
        raise BuildStepError(label, cmd, COMMAND_NOT_FOUND, error_hint)

    if result.returncode != 0:
        logger.error(f"[{label}] Step failed with exit code {result.returncode}")
        raise BuildStepError(
            label, cmd, result.returncode,
            f"{label} failed with exit code {result.returncode}: {' '.join(str(c) for c in cmd)}"
        )
