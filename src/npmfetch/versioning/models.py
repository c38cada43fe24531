"""Data models for version matching."""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

import semantic_version

from ..constants import Constants

_UNCONSTRAINED_ANY = re.compile(Constants.UNCONSTRAINED_ANY_RE)


@dataclass(frozen=True)
class Selection:
    """Outcome of matching a constraint against published versions."""
    version: semantic_version.Version
    matched: int
    candidates: int
    skipped: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return str(self.version)


def parse_version(raw: str) -> Optional[semantic_version.Version]:
    """Parse a published version string; None when it is not valid semver."""
    try:
        return semantic_version.Version(raw.strip())
    except ValueError:
        return None


def is_unconstrained(constraint: Optional[str]) -> bool:
    """Return True for the unconstrained-any forms (empty, ``*``, ``x``, ``x.x.x``...)."""
    if constraint is None:
        return False
    text = constraint.strip()
    return not text or _UNCONSTRAINED_ANY.fullmatch(text) is not None
