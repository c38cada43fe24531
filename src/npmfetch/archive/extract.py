"""Safe extraction of gzip-compressed tarballs.

Members that would land outside the target directory (absolute paths, ``..``
components, escaping links) are rejected before anything is written.
"""

import logging
import sys
import tarfile
from pathlib import Path

logger = logging.getLogger(__name__)


class ArchiveSecurityError(Exception):
    """Raised when an archive contains potentially malicious paths."""


def _is_path_safe(member_path: Path, target_dir: Path) -> bool:
    try:
        resolved = (target_dir / member_path).resolve()
        return resolved == target_dir or target_dir in resolved.parents
    except (ValueError, RuntimeError):
        return False


def _validate_members(tar_ref: tarfile.TarFile, target_dir: Path) -> None:
    for member in tar_ref.getmembers():
        member_path = Path(member.name)
        if member_path.is_absolute() or ".." in member_path.parts:
            raise ArchiveSecurityError(f"Tar Slip detected: {member.name} contains path traversal")
        if member.issym() or member.islnk():
            link_target = Path(member.linkname)
            if link_target.is_absolute() or ".." in link_target.parts:
                raise ArchiveSecurityError(
                    f"Symlink attack detected: {member.name} -> {member.linkname}"
                )
        if not _is_path_safe(member_path, target_dir):
            raise ArchiveSecurityError(f"Tar Slip detected: {member.name} escapes target directory")


def extract_tgz(archive_path: Path, target_dir: Path) -> None:
    """Extract the gzip tarball ``archive_path`` into ``target_dir``.

    Raises:
        ArchiveSecurityError: If a member would escape ``target_dir``.
        tarfile.TarError: If the archive is corrupt or not a gzip tarball.
        OSError: On filesystem errors while writing.
    """
    target_dir = target_dir.resolve()
    target_dir.mkdir(parents=True, exist_ok=True)

    with tarfile.open(archive_path, "r:gz") as tar_ref:
        _validate_members(tar_ref, target_dir)
        # Python 3.12+ has built-in filter parameter
        if sys.version_info >= (3, 12):
            tar_ref.extractall(target_dir, filter="data")
        else:
            tar_ref.extractall(target_dir)

    logger.debug("Extracted %s to %s", archive_path, target_dir)
