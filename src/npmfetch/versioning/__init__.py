"""Version parsing, constraint matching and request tokenizing."""

from .models import Selection, is_unconstrained, parse_version
from .parser import basename, parse_query, tokenize_rightmost_colon
from .resolver import VersionResolver, parse_constraint

__all__ = [
    "Selection",
    "VersionResolver",
    "basename",
    "is_unconstrained",
    "parse_constraint",
    "parse_query",
    "parse_version",
    "tokenize_rightmost_colon",
]
