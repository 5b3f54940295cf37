"""Merkle-Patricia trie construction for producing proofs."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from eth_hash.auto import keccak
import rlp

from parastate.core.types import Hash32
from parastate.trie.nibbles import Nibbles, TERMINATOR, keybytes_to_hex, prefix_len
from parastate.trie.node import (
    EMPTY,
    FULL_NODE_WIDTH,
    FullNode,
    HashNode,
    Node,
    ShortNode,
    ValueNode,
    encode_node,
)
from parastate.trie.proof import verify_proof
from parastate.trie.store import ProofStore

EMPTY_ROOT: Hash32 = keccak(rlp.encode(b""))


class _RecordingReader:
    """Node reader that copies every node it serves into ``proof``."""

    def __init__(self, nodes: Mapping[Hash32, bytes], proof: ProofStore) -> None:
        self._nodes = nodes
        self._proof = proof

    def get(self, node_hash: Hash32) -> bytes | None:
        data = self._nodes.get(node_hash)
        if data is not None:
            self._proof.put(node_hash, data)
        return data


class ProofTrie:
    """Trie over a fixed set of key/value pairs.

    Nodes whose encoding is shorter than 32 bytes are embedded in their
    parent; everything else, and always the root, is stored by hash.
    """

    def __init__(self) -> None:
        self._nodes: dict[Hash32, bytes] = {}
        self._root: Hash32 = EMPTY_ROOT

    def build(self, items: Mapping[bytes, bytes] | Iterable[tuple[bytes, bytes]]) -> Hash32:
        """Build the trie from ``items`` and return its root hash."""
        pairs = dict(items)
        for key, value in pairs.items():
            if not value:
                raise ValueError(f"empty value for key {key.hex()}: the trie cannot store empty values")

        self._nodes = {}
        if not pairs:
            enc = rlp.encode(b"")
            self._nodes[EMPTY_ROOT] = enc
            self._root = EMPTY_ROOT
            return self._root

        entries = sorted((keybytes_to_hex(k), v) for k, v in pairs.items())
        root = self._build(entries, 0)
        enc = encode_node(root)
        self._root = keccak(enc)
        self._nodes[self._root] = enc
        return self._root

    def get_root(self) -> Hash32:
        return self._root

    def store(self) -> ProofStore:
        """Store holding every hashed node of the trie."""
        store = ProofStore()
        for node_hash, enc in self._nodes.items():
            store.put(node_hash, enc)
        return store

    def generate_proof(self, key: bytes) -> ProofStore:
        """Nodes on the path to ``key``; proves absence if the key is not set."""
        proof = ProofStore()
        verify_proof(self._root, key, _RecordingReader(self._nodes, proof))
        return proof

    def _build(self, entries: Sequence[tuple[Nibbles, bytes]], depth: int) -> Node:
        if len(entries) == 1:
            key, value = entries[0]
            return ShortNode(key[depth:], ValueNode(value))

        # entries are sorted, so the first and last bound the shared prefix
        first, last = entries[0][0], entries[-1][0]
        shared = prefix_len(first[depth:], last[depth:])
        if shared:
            child = self._build(entries, depth + shared)
            return ShortNode(first[depth:depth + shared], self._ref(child))

        children: list[Node] = [EMPTY] * FULL_NODE_WIDTH
        groups: dict[int, list[tuple[Nibbles, bytes]]] = {}
        for key, value in entries:
            groups.setdefault(key[depth], []).append((key, value))
        for nibble, group in groups.items():
            if nibble == TERMINATOR:
                children[nibble] = ValueNode(group[0][1])
            else:
                children[nibble] = self._ref(self._build(group, depth + 1))
        return FullNode(tuple(children))

    def _ref(self, node: Node) -> Node:
        enc = encode_node(node)
        if len(enc) < 32:
            return node
        node_hash = keccak(enc)
        self._nodes[node_hash] = enc
        return HashNode(node_hash)
