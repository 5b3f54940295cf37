"""Errors raised while decoding trie nodes and checking proofs."""

from __future__ import annotations

from parastate.core.types import Hash32


class ProofError(Exception):
    """Base class for proof verification failures."""


class MissingNodeError(ProofError):
    """The proof store does not hold a node the walk needs."""

    def __init__(self, index: int, node_hash: Hash32) -> None:
        self.index = index
        self.hash = node_hash
        super().__init__(f"proof node {index} (hash {node_hash.hex():0>64}) missing")


class MalformedNodeError(ProofError):
    """A proof node could not be decoded."""

    def __init__(self, index: int, cause: Exception | str) -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"bad proof node {index}: {cause}")


class MalformedValueError(ProofError):
    """A proven value does not decode as the expected record."""


class NodeDecodeError(Exception):
    """RLP payload is not a valid trie node."""

    def __init__(self, message: str, node_hash: Hash32 | None = None) -> None:
        self.message = message
        self.hash = node_hash
        if node_hash:
            super().__init__(f"{message} (node {node_hash.hex()})")
        else:
            super().__init__(message)


class HashMismatchError(ValueError):
    """Node bytes stored under a hash that is not their Keccak-256 digest."""

    def __init__(self, expected: Hash32, actual: Hash32) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"node hash mismatch: keyed {expected.hex()}, content hashes to {actual.hex()}")
