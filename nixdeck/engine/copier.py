"""
Recursive file copier.

Copies plain content only: symlinks are followed, permissions and
timestamps are not carried over. The first failure aborts the walk and
nothing already copied is rolled back.
"""

import logging
import shutil
from pathlib import Path

from ..errors import IOFailureError

logger = logging.getLogger(__name__)


def copy_tree(source: Path, destination: Path) -> None:
    """
    Copy a file or directory tree byte for byte.

    Args:
        source: File or directory to copy
        destination: Target path; missing ancestors are created

    Raises:
        IOFailureError: On the first read, write or mkdir failure
    """
    source = Path(source)
    destination = Path(destination)

    if source.is_dir():
        try:
            destination.mkdir(parents=True, exist_ok=True)
            entries = sorted(source.iterdir())
        except OSError as e:
            raise IOFailureError("create directory", str(e), str(destination)) from e

        for entry in entries:
            copy_tree(entry, destination / entry.name)
        return

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
    except OSError as e:
        raise IOFailureError("copy file", str(e), str(source)) from e

    logger.debug(f"Copied {source} -> {destination}")
