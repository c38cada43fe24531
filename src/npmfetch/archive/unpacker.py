"""Archive fetcher: download a resolved package and unpack it in place.

Layout produced under the destination root::

    <root>/<name>/        final package content
    <root>/<name>_tmp/    staging area, only present while materializing
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path
from typing import Optional

import requests

from ..common.http_client import HttpTransport
from ..common.logging_utils import Timer, extra_context, safe_url
from ..config import FetchConfig
from ..constants import Constants
from ..errors import DownloadError, ExtractError, UnpackLayoutError
from ..node import NodeState, PackageNode
from ..versioning.parser import basename
from .extract import ArchiveSecurityError, extract_tgz

logger = logging.getLogger(__name__)


class PackageUnpacker:
    """Materialize resolved package nodes on disk."""

    def __init__(self, config: FetchConfig, transport: Optional[HttpTransport] = None) -> None:
        self.config = config
        self.transport = transport or HttpTransport(config)

    @staticmethod
    def final_dir(node: PackageNode, root: Path) -> Path:
        return Path(root) / node.name

    @staticmethod
    def staging_dir(node: PackageNode, root: Path) -> Path:
        return Path(root) / (node.name + Constants.STAGING_SUFFIX)

    @staticmethod
    def archive_name(node: PackageNode) -> str:
        return f"{basename(node.name)}-{node.resolved_version}{Constants.ARCHIVE_SUFFIX}"

    def materialize(self, node: PackageNode, destination_root: Path) -> Path:
        """Download and unpack ``node`` into ``destination_root/<name>``.

        Nothing is fetched when the final directory already exists. The
        staging directory is left behind when the download or the extraction
        fails, for diagnosis.

        Args:
            node: A resolved node (version and tarball URL set).
            destination_root: Directory shared by every package of the walk.

        Returns:
            Path: The final package directory.

        Raises:
            DownloadError: If the staging directory cannot be created or the tarball
                transfer fails.
            ExtractError: If the tarball cannot be unpacked.
            UnpackLayoutError: If the unpacked layout is ambiguous or cannot be moved.
        """
        if not node.is_resolved:
            raise ValueError(f"{node.name} must be resolved before it is materialized")

        version = str(node.resolved_version)
        final_dir = self.final_dir(node, destination_root)
        staging_dir = self.staging_dir(node, destination_root)

        if final_dir.exists():
            logger.debug("%s already present at %s; skipping", node, final_dir)
            node.materialized_path = final_dir
            node.downloaded = False
            node.advance(NodeState.MATERIALIZED)
            return final_dir

        try:
            staging_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DownloadError(
                node.name, version, safe_url(str(node.download_url)), exc
            ) from exc
        archive = staging_dir / self.archive_name(node)

        logger.info("Downloading %s:%s", node.name, version)
        with Timer() as timer:
            try:
                size = self.transport.download(str(node.download_url), str(archive), context="tarball")
            except (requests.RequestException, OSError) as exc:
                raise DownloadError(node.name, version, safe_url(str(node.download_url)), exc) from exc
        logger.debug(
            "Tarball downloaded",
            extra=extra_context(
                event="download",
                component="unpacker",
                package=node.name,
                version=version,
                bytes=size,
                duration_ms=timer.duration_ms(),
            ),
        )

        try:
            extract_tgz(archive, staging_dir)
        except (tarfile.TarError, ArchiveSecurityError, OSError, EOFError) as exc:
            raise ExtractError(node.name, version, exc) from exc

        try:
            archive.unlink()
        except OSError as exc:
            logger.warning("Could not delete archive %s: %s", archive, exc)

        source = self._package_root(node, version, staging_dir)
        try:
            shutil.move(str(source), str(final_dir))
        except OSError as exc:
            raise UnpackLayoutError(
                node.name, version, f"could not move {source} to {final_dir}", exc
            ) from exc

        try:
            shutil.rmtree(staging_dir)
        except OSError as exc:
            logger.warning("Error while deleting temporary folder %s: %s", staging_dir, exc)

        node.materialized_path = final_dir
        node.downloaded = True
        node.advance(NodeState.MATERIALIZED)
        logger.info("Unpacked %s:%s into %s", node.name, version, final_dir)
        return final_dir

    @staticmethod
    def _package_root(node: PackageNode, version: str, staging_dir: Path) -> Path:
        """Pick the single relevant root of the unpacked content."""
        try:
            entries = sorted(staging_dir.iterdir())
        except OSError as exc:
            raise UnpackLayoutError(
                node.name, version, f"could not list {staging_dir}", exc
            ) from exc
        if len(entries) == 1:
            return entries[0]
        package_dir = staging_dir / Constants.PACKAGE_ROOT_DIR
        if package_dir.is_dir():
            return package_dir
        names = ", ".join(entry.name for entry in entries) or "<empty>"
        raise UnpackLayoutError(
            node.name, version, f"expected a single root entry or 'package/', found: {names}"
        )
