"""Merkle-Patricia trie proofs."""

from parastate.trie.errors import (
    ProofError,
    MissingNodeError,
    MalformedNodeError,
    MalformedValueError,
    NodeDecodeError,
    HashMismatchError,
)
from parastate.trie.store import ProofStore
from parastate.trie.proof import verify_proof, verify_account, verify_storage
from parastate.trie.builder import ProofTrie, EMPTY_ROOT

__all__ = [
    "ProofError",
    "MissingNodeError",
    "MalformedNodeError",
    "MalformedValueError",
    "NodeDecodeError",
    "HashMismatchError",
    "ProofStore",
    "verify_proof",
    "verify_account",
    "verify_storage",
    "ProofTrie",
    "EMPTY_ROOT",
]
