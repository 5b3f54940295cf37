"""Trie node variants and their RLP codec."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import rlp
from rlp.exceptions import DecodingError

from parastate.core.types import HASH_LENGTH, Hash32
from parastate.trie.errors import NodeDecodeError
from parastate.trie.nibbles import Nibbles, compact_to_hex, has_term, hex_to_compact

FULL_NODE_WIDTH = 17
VALUE_SLOT = 16
# embedded children are under 32 bytes, which bounds how deep a real node nests
MAX_NESTING = 32


@dataclass(frozen=True, slots=True)
class EmptyNode:
    pass


EMPTY = EmptyNode()


@dataclass(frozen=True, slots=True)
class HashNode:
    hash: Hash32


@dataclass(frozen=True, slots=True)
class ValueNode:
    value: bytes


@dataclass(frozen=True, slots=True)
class ShortNode:
    """Path-compressed node. Leaf keys end with the terminator nibble."""

    key: Nibbles
    val: Node


@dataclass(frozen=True, slots=True)
class FullNode:
    """16-way branch; slot 16 holds the value of a key ending here."""

    children: tuple[Node, ...]

    def __post_init__(self) -> None:
        if len(self.children) != FULL_NODE_WIDTH:
            raise ValueError(f"full node needs {FULL_NODE_WIDTH} children, got {len(self.children)}")


Node = Union[EmptyNode, HashNode, ValueNode, ShortNode, FullNode]


def decode_node(expected_hash: Hash32 | None, buf: bytes) -> Node:
    """Decode the RLP encoding of one node.

    ``expected_hash`` is only used in error messages; the node is not hashed.
    """
    if not buf:
        return EMPTY
    if _nesting_exceeds(buf, MAX_NESTING):
        raise NodeDecodeError(f"RLP lists nested deeper than {MAX_NESTING}", expected_hash)
    try:
        elems = rlp.decode(buf)
    except (DecodingError, RecursionError) as e:
        raise NodeDecodeError(f"invalid RLP: {e}", expected_hash) from e
    return _decode_elems(expected_hash, elems)


def _nesting_exceeds(buf: bytes, limit: int) -> bool:
    """Scan list headers without decoding; malformed lengths are left to rlp."""
    ends: list[int] = []
    pos = 0
    while pos < len(buf):
        while ends and pos >= ends[-1]:
            ends.pop()
        prefix = buf[pos]
        if prefix < 0x80:
            pos += 1
        elif prefix <= 0xB7:
            pos += 1 + prefix - 0x80
        elif prefix <= 0xBF:
            size_len = prefix - 0xB7
            size = int.from_bytes(buf[pos + 1:pos + 1 + size_len], "big")
            pos += 1 + size_len + size
        elif prefix <= 0xF7:
            pos += 1
            ends.append(pos + prefix - 0xC0)
        else:
            size_len = prefix - 0xF7
            size = int.from_bytes(buf[pos + 1:pos + 1 + size_len], "big")
            pos += 1 + size_len
            ends.append(pos + size)
        if len(ends) > limit:
            return True
    return False


def _decode_elems(expected_hash: Hash32 | None, elems: Any) -> Node:
    # the RLP empty string is the encoding of an empty trie
    if elems == b"":
        return EMPTY
    if not isinstance(elems, (list, tuple)):
        raise NodeDecodeError("node is not an RLP list", expected_hash)
    if len(elems) == 2:
        return _decode_short(expected_hash, elems)
    if len(elems) == FULL_NODE_WIDTH:
        return _decode_full(expected_hash, elems)
    raise NodeDecodeError(f"invalid number of list elements: {len(elems)}", expected_hash)


def _decode_short(expected_hash: Hash32 | None, elems: list[Any]) -> ShortNode:
    compact, rest = elems
    if not isinstance(compact, bytes):
        raise NodeDecodeError("short node key is not a string", expected_hash)
    try:
        key = compact_to_hex(compact)
    except ValueError as e:
        raise NodeDecodeError(f"in short node: {e}", expected_hash) from e

    if has_term(key):
        if not isinstance(rest, bytes):
            raise NodeDecodeError("invalid value node: leaf value is a list", expected_hash)
        return ShortNode(key, ValueNode(rest))

    try:
        val = _decode_ref(rest)
    except NodeDecodeError as e:
        raise NodeDecodeError(f"in short node: {e.message}", expected_hash) from e
    return ShortNode(key, val)


def _decode_full(expected_hash: Hash32 | None, elems: list[Any]) -> FullNode:
    children: list[Node] = []
    for i, elem in enumerate(elems[:VALUE_SLOT]):
        try:
            children.append(_decode_ref(elem))
        except NodeDecodeError as e:
            raise NodeDecodeError(f"in full node child {i}: {e.message}", expected_hash) from e

    value = elems[VALUE_SLOT]
    if not isinstance(value, bytes):
        raise NodeDecodeError("invalid value node: full node value is a list", expected_hash)
    children.append(ValueNode(value) if value else EMPTY)
    return FullNode(tuple(children))


def _decode_ref(elem: Any) -> Node:
    if isinstance(elem, (list, tuple)):
        size = len(rlp.encode(elem))
        if size >= HASH_LENGTH:
            raise NodeDecodeError(f"oversized embedded node (size is {size} bytes, want size < {HASH_LENGTH})")
        return _decode_elems(None, elem)
    if len(elem) == 0:
        return EMPTY
    if len(elem) == HASH_LENGTH:
        return HashNode(elem)
    raise NodeDecodeError(f"invalid RLP string size {len(elem)} (want 0 or {HASH_LENGTH})")


def node_to_rlp(node: Node) -> Any:
    """Structure that ``rlp.encode`` turns into the canonical node encoding."""
    if isinstance(node, EmptyNode):
        return b""
    if isinstance(node, HashNode):
        return node.hash
    if isinstance(node, ValueNode):
        return node.value
    if isinstance(node, ShortNode):
        return [hex_to_compact(node.key), node_to_rlp(node.val)]
    if isinstance(node, FullNode):
        return [node_to_rlp(child) for child in node.children]
    raise TypeError(f"not a trie node: {node!r}")


def encode_node(node: Node) -> bytes:
    return rlp.encode(node_to_rlp(node))
