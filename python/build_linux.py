"""
build-linux - extract and compile a kernel tree with a sized job count.

Usage:
    build-linux <target> [<weight> [<divisor>]]
    build-linux --preset build-linux-half
    build-linux --list-presets

The job count is computed from NR_CPUS, weight and divisor (see job_count).
Without a weight, make runs with a bare -j (no job cap) and NR_CPUS is not
needed.

Exit status is 0 on success, 2 for invalid arguments, 1 for environment
problems, and the failing step's own exit status otherwise.
"""

import argparse
import logging
import lzma
import sys
import tarfile
import zlib
from typing import List, Optional

import env_manager
from build_presets import BUILD_PRESETS, describe_preset, get_preset
from build_step import BuildStepError
from job_count import BuildRequest, parse_weight, plan_parallelism
from kernel_builder import KernelBuilder
from tar_extractor import TarExtractor

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE = "../../linux.tar"


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid divisor: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"divisor must be a positive integer, got {number}")
    return number


def _weight(value: str):
    try:
        return parse_weight(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="build-linux",
        description="Extract the kernel archive, configure it and compile it",
    )
    parser.add_argument("target", nargs="?",
                        help="make configuration target (e.g. allmodconfig)")
    parser.add_argument("weight", nargs="?", type=_weight,
                        help="share of NR_CPUS to use (e.g. 1, 0.5, 1/2)")
    parser.add_argument("divisor", nargs="?", type=_positive_int,
                        help="divide the weighted job count by this")
    parser.add_argument("--preset", choices=sorted(BUILD_PRESETS),
                        help="use a named workload instead of positional arguments")
    parser.add_argument("--list-presets", action="store_true",
                        help="list named workloads and exit")
    parser.add_argument("--archive", default=DEFAULT_ARCHIVE,
                        help=f"kernel source archive (default: {DEFAULT_ARCHIVE})")
    parser.add_argument("--dest", default=".",
                        help="directory to extract into (default: .)")
    return parser


def resolve_request(parser: argparse.ArgumentParser, args: argparse.Namespace) -> BuildRequest:
    if args.preset:
        if args.target is not None:
            parser.error("--preset cannot be combined with positional arguments")
        return get_preset(args.preset)
    if args.target is None:
        parser.error("a target or --preset is required")
    return BuildRequest(target=args.target, weight=args.weight, divisor=args.divisor)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_presets:
        for name in sorted(BUILD_PRESETS):
            print(f"{name:<28} {describe_preset(name)}")
        return 0

    env_manager.setup_logging()
    request = resolve_request(parser, args)

    try:
        plan = plan_parallelism(request)
    except ValueError as e:
        parser.error(str(e))
    except EnvironmentError as e:
        logger.error(str(e))
        return 1

    jobs = plan.jobs if plan.jobs is not None else "unlimited"
    print(f"Building {request.target} kernel with {jobs} jobs...", flush=True)

    try:
        tree = TarExtractor().extract(args.archive, args.dest)
        result = KernelBuilder().build(tree, request.target, plan)
    except BuildStepError as e:
        logger.error(str(e))
        return e.returncode
    except EnvironmentError as e:
        logger.error(str(e))
        return 1
    except (tarfile.TarError, EOFError, zlib.error, lzma.LZMAError, RuntimeError) as e:
        # Corrupt or truncated archives surface the decoder's own error text
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    print(f"Compilation took {result.elapsed_seconds} seconds", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
