import logging
import os
import shutil
import tarfile
import time
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

# Entries extracted between progress reports
CHECKPOINT_INTERVAL = 2500

ProgressCallback = Callable[[int, float], None]


def print_checkpoint(count: int, timestamp: float) -> None:
    """Default progress sink, one stdout line per checkpoint."""
    print(f"Untarred {count} files: {time.strftime('%H:%M:%S', time.localtime(timestamp))}",
          flush=True)


class TarExtractor:
    """
    Unpacks a source archive into a destination directory with periodic
    progress reports.

    Any previous tree whose name starts with the prefix is removed before
    extraction, so repeated runs against the same destination leave exactly
    one tree behind.

    Args:
        prefix: Name prefix of the top-level source directory (e.g. "linux-")
        checkpoint_interval: Report progress after this many entries
        progress: Callable receiving (entries_extracted, timestamp)
    """

    def __init__(
        self,
        prefix: str = "linux-",
        checkpoint_interval: int = CHECKPOINT_INTERVAL,
        progress: Optional[ProgressCallback] = None,
    ):
        if not prefix:
            raise ValueError("Source tree prefix must not be empty")
        if checkpoint_interval < 1:
            raise ValueError(
                f"Checkpoint interval must be positive, got {checkpoint_interval}"
            )
        self.prefix = prefix
        self.checkpoint_interval = checkpoint_interval
        self.progress = progress or print_checkpoint

    def purge(self, dest: Path) -> None:
        """Remove every entry in dest whose name starts with the prefix."""
        for stale in sorted(dest.glob(f"{self.prefix}*")):
            logger.info(f"Removing stale tree: {stale}")
            if stale.is_dir() and not stale.is_symlink():
                shutil.rmtree(stale)
            else:
                stale.unlink()

    def extract(self, archive: Union[str, Path], dest: Union[str, Path]) -> Path:
        """
        Extract an archive and return the source tree it contains.

        Args:
            archive: Path to the tar archive (any compression tarfile supports)
            dest: Directory to extract into; created if absent

        Returns:
            Path to the extracted top-level directory bearing the prefix

        Raises:
            FileNotFoundError: If the archive does not exist
            PermissionError: If dest is not writable
            tarfile.TarError: If the archive is corrupt
            EOFError, zlib.error, lzma.LZMAError: If a compressed archive is
                truncated or damaged
            RuntimeError: If the archive holds no directory with the prefix
        """
        archive = Path(archive)
        dest = Path(dest)

        if not archive.is_file():
            raise FileNotFoundError(f"Source archive not found: {archive}")

        dest.mkdir(parents=True, exist_ok=True)
        if not os.access(dest, os.W_OK | os.X_OK):
            raise PermissionError(f"Destination not writable: {dest}")

        self.purge(dest)

        logger.info(f"Extracting {archive} into {dest}...")
        top_dirs = set()
        count = 0
        with tarfile.open(archive, "r:*") as tar:
            for member in tar:
                tar.extract(member, dest, filter="tar")
                top = Path(member.name).parts[0] if member.name else ""
                if top.startswith(self.prefix):
                    top_dirs.add(top)
                count += 1
                if count % self.checkpoint_interval == 0:
                    self.progress(count, time.time())

        logger.info(f"Extracted {count} entries")

        trees = sorted(d for d in top_dirs if (dest / d).is_dir())
        if not trees:
            raise RuntimeError(
                f"No directory starting with '{self.prefix}' found in {archive}"
            )
        if len(trees) > 1:
            logger.warning(f"Multiple source trees in {archive}: {trees}, using {trees[0]}")
        return dest / trees[0]
