"""
Archive helpers for repository downloads.

Extraction happens into a staging directory first; the staged entries are
then moved into the destination all-or-nothing. Entries whose path would
leave the staging directory are rejected.
"""

import logging
import os
import shutil
import zipfile
from pathlib import Path
from typing import BinaryIO

from vcsbridge.core.context import CallContext
from vcsbridge.core.exceptions import TransientError, ValidationError


logger = logging.getLogger("Archive")


def ensure_writable_directory(path: str | os.PathLike[str]) -> Path:
    """
    Check that ``path`` is an existing, writable directory.

    Raises:
        ValidationError: If it is missing, not a directory, or not writable
    """
    directory = Path(path)
    if not directory.exists():
        raise ValidationError(f"Destination {directory} does not exist")
    if not directory.is_dir():
        raise ValidationError(f"Destination {directory} is not a directory")
    if not os.access(directory, os.W_OK | os.X_OK):
        raise ValidationError(f"Destination {directory} is not writable")
    return directory


def extract_zip(archive: BinaryIO, destination: Path, ctx: CallContext | None = None) -> int:
    """
    Extract a ZIP archive into ``destination``.

    Args:
        archive: Seekable binary file holding the archive
        destination: Existing directory to extract into
        ctx: Optional call context checked between entries

    Returns:
        Number of files extracted

    Raises:
        ValidationError: If an entry would be written outside ``destination``
        TransientError: If the archive is corrupt
    """
    root = destination.resolve()
    extracted = 0

    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.infolist():
                if ctx is not None:
                    ctx.raise_if_cancelled()

                target = (root / member.filename).resolve()
                if target != root and not target.is_relative_to(root):
                    raise ValidationError(f"Illegal file path in archive: {member.filename}")

                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member) as source, open(target, "wb") as sink:
                    shutil.copyfileobj(source, sink)
                extracted += 1
    except zipfile.BadZipFile as e:
        raise TransientError("Downloaded archive is corrupt", cause=e) from e
    except OSError as e:
        raise TransientError(f"Could not extract archive into {destination}", cause=e) from e

    logger.debug(f"Extracted {extracted} files into {destination}")
    return extracted


def install_staged(staging: Path, destination: Path) -> list[Path]:
    """
    Move every top-level entry of ``staging`` into ``destination``.

    Nothing is moved if any entry already exists in ``destination``. If a
    move fails midway, the entries already moved are removed again.

    Returns:
        Paths created in ``destination``

    Raises:
        ValidationError: On a name clash or when the move fails
    """
    entries = sorted(staging.iterdir())

    conflicts = [entry.name for entry in entries if (destination / entry.name).exists()]
    if conflicts:
        raise ValidationError(
            f"Destination {destination} already contains: {', '.join(conflicts[:10])}"
        )

    moved: list[Path] = []
    try:
        for entry in entries:
            target = destination / entry.name
            shutil.move(str(entry), str(target))
            moved.append(target)
    except OSError as e:
        for path in reversed(moved):
            remove_path(path)
        raise ValidationError(
            f"Could not move repository contents into {destination}", cause=e
        ) from e

    return moved


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    elif path.exists() or path.is_symlink():
        path.unlink(missing_ok=True)
