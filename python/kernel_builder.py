import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import env_manager
from build_step import run_step
from job_count import ParallelismPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KernelBuildResult:
    source_tree: Path
    jobs: Optional[int]
    started_at: float
    ended_at: float

    @property
    def elapsed_seconds(self) -> int:
        return int(self.ended_at) - int(self.started_at)


class KernelBuilder:
    """
    Configures and compiles an extracted kernel source tree with make.

    Two steps, strictly in order:
    1. configure - `make <target>` (e.g. allmodconfig, defconfig)
    2. compile - `make -jN`, or a bare `make -j` without a job count, timed

    Only the compile step is timed. A failure in either step raises and
    nothing is retried.
    """

    def __init__(self, make: Optional[str] = None):
        """
        Args:
            make: Make executable. Defaults to $MAKE, then "make".
        """
        self.make = make or env_manager.get("MAKE", "make")

    def _check_tree(self, tree: Path) -> Path:
        tree = Path(tree)
        if not tree.is_dir():
            raise FileNotFoundError(f"Source tree not found: {tree}")
        return tree

    def configure(self, tree: Union[str, Path], target: str) -> None:
        """
        Run the configuration step for the given target.

        Raises:
            FileNotFoundError: If the source tree does not exist
            BuildStepError: If make fails
        """
        tree = self._check_tree(tree)
        logger.info(f"[Configure] Generating {target} configuration in {tree.name}...")
        run_step(
            [self.make, target], "Configure", cwd=tree,
            error_hint=f"{self.make} not found. Please install make."
        )

    def compile(self, tree: Union[str, Path], plan: ParallelismPlan) -> KernelBuildResult:
        """
        Run the compilation step and time it.

        Args:
            tree: Configured source tree
            plan: Parallelism plan; a bare -j is passed when plan.jobs is None

        Returns:
            KernelBuildResult with wall-clock start and end times

        Raises:
            FileNotFoundError: If the source tree does not exist
            BuildStepError: If make fails
        """
        tree = self._check_tree(tree)
        cmd = [self.make] + plan.make_args()

        started_at = time.time()
        run_step(
            cmd, "Compile", cwd=tree,
            error_hint=f"{self.make} not found. Please install make."
        )
        ended_at = time.time()

        result = KernelBuildResult(
            source_tree=tree, jobs=plan.jobs,
            started_at=started_at, ended_at=ended_at,
        )
        logger.info(f"[Compile] Finished in {result.elapsed_seconds} seconds")
        return result

    def build(
        self,
        tree: Union[str, Path],
        target: str,
        plan: ParallelismPlan,
    ) -> KernelBuildResult:
        """Configure then compile. See configure() and compile()."""
        self.configure(tree, target)
        return self.compile(tree, plan)
