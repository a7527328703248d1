"""
HwdbPipeline - builds the benchmark tooling and merges results into the hwdb.

Expected layout under the root directory (sibling checkouts):

    iocost-benchmarks-tools/   merge tool sources (cargo workspace)
    resctl-demo/               benchmark sources (cargo workspace)
    iocost-benchmarks/         benchmark results; the merge tool runs here

Steps, strictly in order, each one aborting the run on failure:
1. Build the merge tool
2. Build the benchmark binary
3. Copy the benchmark binary into iocost-benchmarks/resctl-demo-v<version>/
4. Run the merge tool with no arguments

Usage:
    hwdb-pipeline [--root DIR] [--staging-version 2.2]
"""

import argparse
import logging
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import env_manager
from build_step import BuildStepError, run_step
from cargo_builder import CargoBuilder

logger = logging.getLogger(__name__)


PIPELINE_CONFIG = {
    "merge_tool": {
        "checkout": "iocost-benchmarks-tools",
        "package": None,
        "binary": "merge-results",
    },
    "benchmark": {
        "checkout": "resctl-demo",
        "package": "resctl-bench",
        "binary": "resctl-bench",
    },
    "results": {
        "checkout": "iocost-benchmarks",
        "staging_dir": "resctl-demo-v{version}",
    },
    "staging_version": "2.2",
}


@dataclass(frozen=True)
class StageResult:
    name: str
    output_path: Optional[Path] = None


@dataclass
class PipelineResult:
    returncode: int = 0
    staged_artifact: Optional[Path] = None
    failed_step: Optional[str] = None
    stages: List[StageResult] = field(default_factory=list)


class HwdbPipeline:
    """Runs the build-stage-merge sequence against a fixed checkout layout.

    Args:
        root: Directory holding the sibling checkouts
        staging_version: Version used to namespace the staging directory
        builder: CargoBuilder used for both component builds
        config: Layout configuration, defaults to PIPELINE_CONFIG
    """

    TOTAL_STEPS = 4

    def __init__(
        self,
        root: Union[str, Path] = ".",
        staging_version: Optional[str] = None,
        builder: Optional[CargoBuilder] = None,
        config: Optional[dict] = None,
    ):
        self.root = Path(root).resolve()
        self.config = config or PIPELINE_CONFIG
        self.staging_version = staging_version or self.config["staging_version"]
        self.builder = builder or CargoBuilder()

        self.tools_dir = self.root / self.config["merge_tool"]["checkout"]
        self.demo_dir = self.root / self.config["benchmark"]["checkout"]
        self.results_dir = self.root / self.config["results"]["checkout"]

    @property
    def staging_dir(self) -> Path:
        name = self.config["results"]["staging_dir"].format(version=self.staging_version)
        return self.results_dir / name

    def check_layout(self) -> None:
        """
        Verify every sibling checkout exists before any step runs.

        Raises:
            FileNotFoundError: Naming every missing checkout
        """
        missing = [
            str(d) for d in (self.tools_dir, self.demo_dir, self.results_dir)
            if not d.is_dir()
        ]
        if missing:
            raise FileNotFoundError(
                f"Missing checkout(s): {', '.join(missing)}"
            )

    def _banner(self, step: int, message: str) -> None:
        logger.info(f"[{step}/{self.TOTAL_STEPS}] {message}")

    def stage_artifact(self, binary: Path) -> Path:
        """Copy the benchmark binary into the version-namespaced staging directory."""
        staging = self.staging_dir
        staging.mkdir(parents=True, exist_ok=True)
        dest = staging / binary.name
        shutil.copy2(binary, dest)
        logger.info(f"Staged {binary.name} at {dest}")
        return dest

    def run(self) -> PipelineResult:
        """
        Run all steps in order, stopping at the first failing step.

        Returns:
            PipelineResult whose returncode is 0 on success, otherwise the
            exit status of the failing build or merge step

        Raises:
            FileNotFoundError: If a checkout or built binary is missing
        """
        self.check_layout()
        result = PipelineResult()

        try:
            self._banner(1, "Building merge tool...")
            merge_cfg = self.config["merge_tool"]
            merge_tool = self.builder.build(
                self.tools_dir, merge_cfg["binary"],
                package=merge_cfg["package"], label="MergeTool",
            )
            result.stages.append(StageResult("merge_tool", merge_tool))

            self._banner(2, "Building benchmark...")
            bench_cfg = self.config["benchmark"]
            bench_binary = self.builder.build(
                self.demo_dir, bench_cfg["binary"],
                package=bench_cfg["package"], label="Benchmark",
            )
            result.stages.append(StageResult("benchmark", bench_binary))

            self._banner(3, f"Staging benchmark into {self.staging_dir.name}...")
            result.staged_artifact = self.stage_artifact(bench_binary)
            result.stages.append(StageResult("stage", result.staged_artifact))

            self._banner(4, "Merging results...")
            run_step(
                [str(merge_tool)], "Merge", cwd=self.results_dir,
                error_hint=f"Merge tool not found: {merge_tool}"
            )
            result.stages.append(StageResult("merge"))
        except BuildStepError as e:
            logger.error(str(e))
            result.returncode = e.returncode
            result.failed_step = e.label
            return result

        logger.info("Pipeline complete!")
        return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hwdb-pipeline",
        description="Build the merge tool and benchmark, stage the benchmark and merge results",
    )
    parser.add_argument("--root", default=".",
                        help="Directory holding the sibling checkouts (default: .)")
    parser.add_argument("--staging-version", default=None,
                        help=f"Staging directory version (default: {PIPELINE_CONFIG['staging_version']})")
    args = parser.parse_args(argv)

    env_manager.setup_logging()

    try:
        result = HwdbPipeline(root=args.root, staging_version=args.staging_version).run()
    except (EnvironmentError, ValueError) as e:
        logger.error(str(e))
        return 1
    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
