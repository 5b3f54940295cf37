"""Core type definitions for parastate dependency analysis and state proofs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeAlias, Union

Bytes32: TypeAlias = bytes
Hash32: TypeAlias = bytes
Address: TypeAlias = bytes
Wei: TypeAlias = int

ADDRESS_LENGTH = 20
HASH_LENGTH = 32

ZERO_HASH: Hash32 = b"\x00" * HASH_LENGTH


class SubPath(IntEnum):
    """Account field selector used by subpath keys."""

    BALANCE = 1
    NONCE = 2
    CODE = 3
    SUICIDE = 4


def _check_address(address: Address) -> None:
    if len(address) != ADDRESS_LENGTH:
        raise ValueError(f"address must be {ADDRESS_LENGTH} bytes, got {len(address)}")


def address_prefix(address: Address | str) -> str:
    """Canonical lowercase hex of an address, as used for ignore prefixes."""
    if isinstance(address, str):
        text = address.lower()
        if text.startswith("0x"):
            text = text[2:]
        if len(text) != 2 * ADDRESS_LENGTH:
            raise ValueError(f"address must be {2 * ADDRESS_LENGTH} hex characters: {address!r}")
        bytes.fromhex(text)
        return text
    _check_address(address)
    return address.hex()


@dataclass(frozen=True, slots=True)
class AddressKey:
    address: Address

    def __post_init__(self) -> None:
        _check_address(self.address)

    def __str__(self) -> str:
        return self.address.hex()


@dataclass(frozen=True, slots=True)
class SubpathKey:
    address: Address
    subpath: SubPath

    def __post_init__(self) -> None:
        _check_address(self.address)

    def __str__(self) -> str:
        return f"{self.address.hex()}:{int(self.subpath)}"


@dataclass(frozen=True, slots=True)
class StorageKey:
    address: Address
    slot: Bytes32

    def __post_init__(self) -> None:
        _check_address(self.address)
        if len(self.slot) != HASH_LENGTH:
            raise ValueError(f"storage slot must be {HASH_LENGTH} bytes, got {len(self.slot)}")

    def __str__(self) -> str:
        return f"{self.address.hex()}:{self.slot.hex()}"


StateKey: TypeAlias = Union[AddressKey, SubpathKey, StorageKey]


def address_key(address: Address) -> str:
    return str(AddressKey(address))


def subpath_key(address: Address, subpath: SubPath) -> str:
    return str(SubpathKey(address, subpath))


def storage_key(address: Address, slot: Bytes32) -> str:
    return str(StorageKey(address, slot))


def parse_key(text: str) -> StateKey:
    """Parse a canonical key string back into its StateKey variant.

    Subpath selectors are short decimals, storage slots are always 64 hex
    characters, so the two forms never collide.
    """
    addr_hex, sep, rest = text.partition(":")
    if len(addr_hex) != 2 * ADDRESS_LENGTH or addr_hex != addr_hex.lower():
        raise ValueError(f"malformed state key: {text!r}")
    try:
        address = bytes.fromhex(addr_hex)
    except ValueError as e:
        raise ValueError(f"malformed state key: {text!r}") from e

    if not sep:
        return AddressKey(address)

    if len(rest) == 2 * HASH_LENGTH and rest == rest.lower():
        try:
            return StorageKey(address, bytes.fromhex(rest))
        except ValueError as e:
            raise ValueError(f"malformed state key: {text!r}") from e

    if rest.isdigit() and str(int(rest)) == rest:
        try:
            return SubpathKey(address, SubPath(int(rest)))
        except ValueError as e:
            raise ValueError(f"unknown subpath in state key: {text!r}") from e

    raise ValueError(f"malformed state key: {text!r}")


@dataclass(frozen=True, slots=True)
class Account:
    """Account record as committed in the state trie."""

    nonce: int
    balance: Wei
    storage_root: Hash32
    code_hash: Hash32
