"""Content-addressed store of proof nodes."""

from __future__ import annotations

from typing import Iterable, Iterator, Protocol

from eth_hash.auto import keccak
from eth_utils import decode_hex

from parastate.core.types import Hash32
from parastate.trie.errors import HashMismatchError


class NodeReader(Protocol):
    def get(self, node_hash: Hash32) -> bytes | None: ...


class ProofStore:
    """Keccak-256 digest -> RLP node bytes.

    Every entry is checked on insertion, so anything read back is the preimage
    of its key. Verification only ever reads from the store.
    """

    def __init__(self) -> None:
        self._nodes: dict[Hash32, bytes] = {}

    @classmethod
    def from_nodes(cls, nodes: Iterable[bytes]) -> ProofStore:
        store = cls()
        for node in nodes:
            store.add(node)
        return store

    @classmethod
    def from_hex_nodes(cls, nodes: Iterable[str]) -> ProofStore:
        """Build a store from ``eth_getProof`` style proof arrays."""
        return cls.from_nodes(decode_hex(node) for node in nodes)

    def put(self, node_hash: Hash32, data: bytes) -> None:
        actual = keccak(data)
        if actual != node_hash:
            raise HashMismatchError(bytes(node_hash), actual)
        # identical hash means identical content, the first write stands
        self._nodes.setdefault(actual, bytes(data))

    def add(self, data: bytes) -> Hash32:
        node_hash = keccak(data)
        self.put(node_hash, data)
        return node_hash

    def get(self, node_hash: Hash32) -> bytes | None:
        return self._nodes.get(bytes(node_hash))

    def hashes(self) -> list[Hash32]:
        return sorted(self._nodes)

    def __contains__(self, node_hash: object) -> bool:
        return node_hash in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[tuple[Hash32, bytes]]:
        return iter(self._nodes.items())
