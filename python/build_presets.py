# Named kernel-build workloads
# Each entry is (make target, weight, divisor); weight/divisor feed job_count

from fractions import Fraction
from typing import Optional, Tuple

from job_count import BuildRequest

BUILD_PRESETS = {
    "build-linux-half":           ("allmodconfig", "1", 2),
    "build-linux-1x":             ("allmodconfig", "1", None),
    "build-linux-2x":             ("allmodconfig", "2", None),
    "build-linux-4x":             ("allmodconfig", "4", None),
    "build-linux-8x":             ("allmodconfig", "8", None),
    "build-linux-16x":            ("allmodconfig", "16", None),
    "build-linux-32x":            ("allmodconfig", "32", None),
    "build-linux-unlimited":      ("allmodconfig", None, None),
    "build-linux-allnoconfig-1x": ("allnoconfig", "1", None),
    "build-linux-defconfig-1x":   ("defconfig", "1", None),
}


def get_preset(name: str) -> BuildRequest:
    """Return the BuildRequest for a named preset.

    Raises:
        KeyError: If the preset does not exist
    """
    if name not in BUILD_PRESETS:
        available = ", ".join(sorted(BUILD_PRESETS))
        raise KeyError(f"Unknown preset '{name}'. Available presets: {available}")

    target, weight, divisor = BUILD_PRESETS[name]
    return BuildRequest(
        target=target,
        weight=Fraction(weight) if weight is not None else None,
        divisor=divisor,
    )


def describe_preset(name: str) -> str:
    target, weight, divisor = BUILD_PRESETS[name]
    args = [a for a in (target, weight, divisor) if a is not None]
    return " ".join(str(a) for a in args)
