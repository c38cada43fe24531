"""Tarball download and unpacking."""

from .extract import ArchiveSecurityError, extract_tgz
from .unpacker import PackageUnpacker

__all__ = ["ArchiveSecurityError", "extract_tgz", "PackageUnpacker"]
