import logging
from pathlib import Path
from typing import Optional, Union

import env_manager
from build_step import run_step

logger = logging.getLogger(__name__)


class CargoBuilder:
    """
    Builds release binaries from a cargo checkout.

    Runs `cargo build -r` (optionally `-p <package>`) in the checkout and
    returns the path of the produced binary under target/release/.
    """

    def __init__(self, cargo: Optional[str] = None):
        """
        Args:
            cargo: Cargo executable. Defaults to $CARGO, then "cargo".
        """
        self.cargo = cargo or env_manager.get("CARGO", "cargo")

    def build(
        self,
        checkout: Union[str, Path],
        binary_name: str,
        package: Optional[str] = None,
        label: str = "Cargo",
    ) -> Path:
        """
        Build a release binary.

        Args:
            checkout: Root of the cargo workspace
            binary_name: Name of the produced executable
            package: Workspace package to build, or None for the default members
            label: Label for log messages

        Returns:
            Path to target/release/<binary_name>

        Raises:
            FileNotFoundError: If the checkout or the built binary is missing
            BuildStepError: If cargo fails
        """
        checkout = Path(checkout)
        if not checkout.is_dir():
            raise FileNotFoundError(f"Checkout not found: {checkout}")

        cmd = [self.cargo, "build", "-r"]
        if package:
            cmd.extend(["-p", package])

        run_step(
            cmd, label, cwd=checkout,
            error_hint=f"{self.cargo} not found. Please install the Rust toolchain."
        )

        binary_path = checkout / "target" / "release" / binary_name
        if not binary_path.is_file():
            raise FileNotFoundError(
                f"Built binary not found: {binary_path}. "
                f"Expected output file name: {binary_name}"
            )

        logger.info(f"[{label}] Built {binary_path}")
        return binary_path
