import logging
import os
import sys
from typing import Optional

logger = logging.getLogger(__name__)

LOG_LEVEL_VAR = "HWDB_LOG_LEVEL"
LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
LOG_FORMAT = "[%(levelname)s] %(message)s"

CAPACITY_VAR = "NR_CPUS"


def ensure(name: str) -> str:
    """
    Return the value of a required environment variable.

    Args:
        name: Environment variable name

    Returns:
        The variable's value

    Raises:
        EnvironmentError: If the variable is unset or empty
    """
    value = os.environ.get(name)
    if not value:
        raise EnvironmentError(
            f"{name} environment variable not set. "
            f"Please export {name} before running this command."
        )
    return value


def get(name: str, default: Optional[str] = None) -> Optional[str]:
    """Return an optional environment variable, treating empty as unset."""
    return os.environ.get(name) or default


def get_capacity() -> int:
    """
    Read the number of parallel execution units from NR_CPUS.

    The value is supplied by whoever launches the build; it is not measured.

    Raises:
        EnvironmentError: If NR_CPUS is not set
        ValueError: If NR_CPUS is not an integer
    """
    value = ensure(CAPACITY_VAR)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{CAPACITY_VAR} must be an integer, got '{value}'")


def log_level() -> int:
    """Map HWDB_LOG_LEVEL to a logging level, INFO when unset or unknown."""
    name = get(LOG_LEVEL_VAR, "info").lower()
    return LOG_LEVELS.get(name, logging.INFO)


def setup_logging() -> None:
    """Send log records to stdout next to the build's own progress lines.

    Leaves an already configured root logger untouched.
    """
    if logging.getLogger().hasHandlers():
        return
    logging.basicConfig(level=log_level(), format=LOG_FORMAT, stream=sys.stdout)
