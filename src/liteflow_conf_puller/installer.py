"""Candidate installation - compare, back up, atomically replace.

Per IMPLEMENTATION_PHILOSOPHY:
- Idempotent: identical content is never rewritten
- Safe: an existing file is only replaced under force or after a backup
- Atomic: the destination is never observed half-written

Side effects are confined to the destination and its backup sibling; the
candidate file is only ever read.
"""

import filecmp
import logging
import os
import shutil
import tempfile
from pathlib import Path

from .exceptions import BackupFailedError
from .exceptions import DestExistsError
from .exceptions import DestUnwritableError
from .schema import InstallResult
from .schema import InstallStatus
from .utils import timestamp_suffix

logger = logging.getLogger(__name__)

_BACKUP_ATTEMPTS = 5


def backup_path_for(dest: Path, suffix: str | None = None) -> Path:
    """Backup sibling name: ``<dest>.backup.<timestamp>``."""
    return dest.with_name(f"{dest.name}.backup.{suffix or timestamp_suffix()}")


def _atomic_copy(source: Path, target: Path) -> None:
    """Copy source over target via a temp file in the same directory."""
    with tempfile.NamedTemporaryFile(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
        delete=False,
    ) as temp_file:
        temp_path = Path(temp_file.name)

    try:
        shutil.copyfile(source, temp_path)
        # Temp files are created 0600; keep the existing mode, else take the candidate's
        shutil.copymode(target if target.exists() else source, temp_path)
        os.replace(temp_path, target)
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)


def create_backup(dest: Path) -> Path:
    """Copy dest to a new, never-reused backup sibling.

    Returns:
        Path of the backup file

    Raises:
        BackupFailedError: If the copy could not be made
    """
    for _ in range(_BACKUP_ATTEMPTS):
        backup = backup_path_for(dest)
        try:
            # Exclusive create: an existing backup is never overwritten
            with open(dest, "rb") as src, open(backup, "xb") as dst:
                shutil.copyfileobj(src, dst)
        except FileExistsError:
            continue
        except OSError as e:
            backup.unlink(missing_ok=True)
            raise BackupFailedError(
                f"Failed to create backup of {dest}: {e}",
                context={"dest": str(dest), "backup": str(backup)},
            ) from e
        shutil.copystat(dest, backup)
        return backup

    raise BackupFailedError(
        f"Failed to create backup of {dest}: no free backup name",
        context={"dest": str(dest)},
    )


def install_candidate(
    candidate: Path,
    dest: Path,
    *,
    backup: bool = False,
    force: bool = False,
) -> InstallResult:
    """
    Install candidate at dest unless the content is already there.

    Process:
    1. Create dest's parent directory
    2. Absent dest: copy candidate in
    3. Identical dest: leave it alone
    4. Differing dest: back up (if requested), refuse (no backup/force), then replace

    Args:
        candidate: Local file holding the fetched content
        dest: Destination path to keep in sync
        backup: Copy the current dest to a timestamped sibling before replacing
        force: Replace a differing dest without a backup

    Returns:
        InstallResult with INSTALLED or UNCHANGED

    Raises:
        DestUnwritableError: Directory creation or the copy failed
        DestExistsError: dest differs and neither backup nor force is set
        BackupFailedError: Requested backup could not be made

    Example:
        >>> result = install_candidate(Path("/tmp/liteflow_wget.x"), Path("/etc/liteflow.conf"), backup=True)
        >>> result.status
        <InstallStatus.INSTALLED: 'installed'>
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DestUnwritableError(
            f"Failed to create destination directory {dest.parent}: {e}",
            context={"dest": str(dest)},
        ) from e

    backup_file = None
    try:
        exists = dest.exists()
        # filecmp caches by stat signature; the git candidate path is reused across syncs
        filecmp.clear_cache()
        identical = exists and filecmp.cmp(candidate, dest, shallow=False)
    except OSError as e:
        raise DestUnwritableError(
            f"Failed to compare with destination {dest}: {e}",
            context={"dest": str(dest)},
        ) from e

    if identical:
        logger.info(f"No changes detected in {dest}")
        return InstallResult(status=InstallStatus.UNCHANGED)

    if exists:
        if backup:
            backup_file = create_backup(dest)
            logger.info(f"Created backup: {backup_file}")
        elif not force:
            raise DestExistsError(
                f"Destination file {dest} exists and differs. Use force to overwrite or backup to keep a copy.",
                context={"dest": str(dest)},
            )
        logger.info(f"Updating {dest} with new version")
    else:
        logger.info(f"Creating {dest}")

    try:
        # Symlinked destinations are written through, the link itself stays
        _atomic_copy(candidate, dest.resolve() if dest.is_symlink() else dest)
    except OSError as e:
        raise DestUnwritableError(f"Failed to write {dest}: {e}", context={"dest": str(dest)}) from e

    return InstallResult(status=InstallStatus.INSTALLED, backup_path=backup_file)
