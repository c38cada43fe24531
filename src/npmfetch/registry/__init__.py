"""NPM registry access: metadata client and typed documents."""

from .client import RegistryClient, encode_name
from .models import Manifest, Packument

__all__ = [
    "RegistryClient",
    "encode_name",
    "Manifest",
    "Packument",
]
