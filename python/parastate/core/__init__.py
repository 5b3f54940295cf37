"""Core types, configuration and logging for parastate."""

from parastate.core.types import (
    Address,
    Bytes32,
    Hash32,
    SubPath,
    AddressKey,
    SubpathKey,
    StorageKey,
    StateKey,
    Account,
    address_key,
    subpath_key,
    storage_key,
    parse_key,
)
from parastate.core.config import ParastateConfig

__all__ = [
    "Address",
    "Bytes32",
    "Hash32",
    "SubPath",
    "AddressKey",
    "SubpathKey",
    "StorageKey",
    "StateKey",
    "Account",
    "address_key",
    "subpath_key",
    "storage_key",
    "parse_key",
    "ParastateConfig",
]
