"""
Job count calculation for parallel kernel compilation.

The job count is derived from the declared capacity (NR_CPUS) and optional
caller hints:

    raw = floor(capacity * weight)
    raw = raw // divisor                   (only when a divisor is given)
    jobs = (raw * 12 + 9) // 10            (ceil(raw * 1.2))

The multiply happens before the divide and both steps truncate, so results
match shell integer arithmetic exactly. Compilation jobs spend part of their
time blocked on I/O, hence the 1.2x oversubscription.

When no weight is given, no job count is computed and make runs with a bare
-j, leaving parallelism uncapped.
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import List, Optional

import env_manager

logger = logging.getLogger(__name__)

OVERSUBSCRIBE_NUMERATOR = 12
OVERSUBSCRIBE_DENOMINATOR = 10


@dataclass(frozen=True)
class BuildRequest:
    """A single kernel-build invocation: make target plus sizing hints."""
    target: str
    weight: Optional[Fraction] = None
    divisor: Optional[int] = None


@dataclass(frozen=True)
class ParallelismPlan:
    """Job count for the compilation step. None means no cap: a bare -j."""
    jobs: Optional[int] = None

    def make_args(self) -> List[str]:
        if self.jobs is None:
            return ["-j"]
        return [f"-j{self.jobs}"]


def parse_weight(value: str) -> Fraction:
    """Parse a weight such as "2", "0.5" or "1/2" into an exact rational."""
    try:
        return Fraction(value)
    except (ValueError, ZeroDivisionError):
        raise ValueError(f"Invalid weight: '{value}'")


def compute_job_count(
    capacity: int,
    weight: Optional[Fraction] = None,
    divisor: Optional[int] = None,
    numerator: int = OVERSUBSCRIBE_NUMERATOR,
    denominator: int = OVERSUBSCRIBE_DENOMINATOR,
) -> Optional[int]:
    """
    Compute the number of compilation jobs.

    Args:
        capacity: Number of available parallel execution units
        weight: Share of capacity to target, or None for the tool default
        divisor: Optional divisor applied after scaling by weight
        numerator: Oversubscription ratio numerator
        denominator: Oversubscription ratio denominator

    Returns:
        Job count, or None when no weight was supplied

    Raises:
        ValueError: If the inputs are invalid or would produce zero jobs
    """
    if weight is None:
        if divisor is not None:
            raise ValueError("A divisor requires a weight")
        return None

    weight = Fraction(weight)
    if weight < 0:
        raise ValueError(f"Weight must not be negative, got {weight}")
    if divisor is not None and divisor <= 0:
        raise ValueError(f"Divisor must be a positive integer, got {divisor}")
    if capacity < 1:
        raise ValueError(f"Capacity must be at least 1, got {capacity}")
    if numerator < 1 or denominator < 1:
        raise ValueError(
            f"Invalid oversubscription ratio: {numerator}/{denominator}"
        )

    raw = (capacity * weight.numerator) // weight.denominator
    if divisor is not None:
        raw //= divisor

    if raw <= 0:
        raise ValueError(
            f"Weight {weight}"
            + (f" / {divisor}" if divisor is not None else "")
            + f" on capacity {capacity} yields no jobs"
        )

    jobs = (raw * numerator + denominator - 1) // denominator
    logger.debug(f"capacity={capacity} weight={weight} divisor={divisor} raw={raw} jobs={jobs}")
    return jobs


def plan_parallelism(request: BuildRequest, capacity: Optional[int] = None) -> ParallelismPlan:
    """
    Derive the ParallelismPlan for a BuildRequest.

    Capacity is read from the environment only when the request carries a
    weight, so the tool-default path works without NR_CPUS.

    Args:
        request: Build request with optional weight and divisor
        capacity: Explicit capacity; defaults to NR_CPUS from the environment

    Raises:
        ValueError: If the request is invalid
        EnvironmentError: If capacity is needed but NR_CPUS is unset
    """
    if request.weight is None:
        return ParallelismPlan(jobs=compute_job_count(0, None, request.divisor))

    if capacity is None:
        capacity = env_manager.get_capacity()

    return ParallelismPlan(
        jobs=compute_job_count(capacity, request.weight, request.divisor)
    )
