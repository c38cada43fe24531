"""Token parsing utilities for package requests and npm ranges."""

import re
from typing import Optional, Tuple


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule.

    Scoped names such as ``@scope/pkg:^1.0.0`` keep their scope because the
    name itself never contains a colon.
    """
    s = s.strip()
    if ':' not in s:
        return s, None
    identifier, spec_part = s.rsplit(':', 1)
    spec = spec_part.strip() or None
    return identifier.strip(), spec


def parse_query(query: str) -> Tuple[str, Optional[str]]:
    """Split a ``name[:constraint]`` request into its parts.

    Raises:
        ValueError: If the name part is empty.
    """
    name, constraint = tokenize_rightmost_colon(query)
    if not name:
        raise ValueError(f"Package request '{query}' has no package name")
    return name, constraint


def basename(name: str) -> str:
    """Strip the ``@scope/`` prefix from a scoped package name."""
    return name.rsplit('/', 1)[-1]


def normalize_spec(spec_str: str) -> str:
    """Normalize npm range syntax (hyphen, x-ranges) into SimpleSpec-compatible form."""
    s = spec_str.strip()

    # Hyphen ranges: "1.2.3 - 1.4.5" => ">=1.2.3,<=1.4.5"
    m = re.match(r'^\s*([0-9A-Za-z\.\-\+]+)\s+-\s+([0-9A-Za-z\.\-\+]+)\s*$', s)
    if m:
        return f">={m.group(1)},<={m.group(2)}"

    s2 = s.replace('*', 'x').lower()
    m = re.match(r'^\s*v?(\d+)\.(\d+)\.x\s*$', s2)
    if m:
        major, minor = int(m.group(1)), int(m.group(2))
        return f">={major}.{minor}.0,<{major}.{minor + 1}.0"

    m = re.match(r'^\s*v?(\d+)(?:\.x)?(?:\.x)?\s*$', s2)
    if m:
        major = int(m.group(1))
        return f">={major}.0.0,<{major + 1}.0.0"

    # Leading "v" on exact versions ("v1.2.3")
    m = re.match(r'^\s*v(\d+\.\d+\.\d+\S*)\s*$', s)
    if m:
        return f"=={m.group(1)}"

    return s
