"""Stateless Merkle-Patricia proof verification.

The caller sources the root hash independently and trusts it; the proof
store only has to hold the nodes on the path from that root to the key.
Because the store is keyed by Keccak-256 digest, every node fetched is
implicitly authenticated by its parent.
"""

from __future__ import annotations

import rlp
from rlp.exceptions import RLPException
from rlp.sedes import Binary, big_endian_int
from eth_hash.auto import keccak
import structlog

from parastate.core.types import Account, Address, Bytes32, Hash32
from parastate.trie.errors import (
    MalformedNodeError,
    MalformedValueError,
    MissingNodeError,
    NodeDecodeError,
)
from parastate.trie.nibbles import Nibbles, keybytes_to_hex
from parastate.trie.node import (
    EMPTY,
    FullNode,
    HashNode,
    Node,
    ShortNode,
    ValueNode,
    VALUE_SLOT,
    decode_node,
)
from parastate.trie.store import NodeReader

logger = structlog.get_logger()

hash32 = Binary.fixed_length(32)


class StateAccount(rlp.Serializable):
    fields = [
        ("nonce", big_endian_int),
        ("balance", big_endian_int),
        ("storage_root", hash32),
        ("code_hash", hash32),
    ]


def _descend(node: Node, key: Nibbles) -> tuple[Nibbles, Node]:
    """Follow ``key`` through one decoded node and its inline children.

    Returns the unconsumed key and the node where the walk stopped: a hash
    reference to resolve, a value, or empty when the key is not present.
    """
    while True:
        if isinstance(node, ShortNode):
            n = len(node.key)
            if len(key) < n or key[:n] != node.key:
                return key, EMPTY
            node = node.val
            key = key[n:]
        elif isinstance(node, FullNode):
            if not key:
                node = node.children[VALUE_SLOT]
            else:
                node = node.children[key[0]]
                key = key[1:]
        else:
            return key, node


def verify_proof(root: Hash32, key: bytes, store: NodeReader) -> bytes | None:
    """Look up ``key`` in the trie committed to by ``root``.

    Returns the value, or ``None`` if the proof shows the key is absent.
    Raises :class:`MissingNodeError` or :class:`MalformedNodeError` when the
    proof is incomplete or a node does not decode.
    """
    path = keybytes_to_hex(key)
    want = bytes(root)
    index = 0
    while True:
        buf = store.get(want)
        if buf is None:
            raise MissingNodeError(index, want)
        try:
            node = decode_node(want, buf)
        except NodeDecodeError as e:
            raise MalformedNodeError(index, e) from e

        path, child = _descend(node, path)
        if isinstance(child, HashNode):
            want = child.hash
            index += 1
        elif isinstance(child, ValueNode):
            return child.value
        else:
            return None


def verify_account(state_root: Hash32, address: Address, store: NodeReader) -> Account | None:
    """Prove an account against a state root. ``None`` if it does not exist."""
    value = verify_proof(state_root, keccak(address), store)
    if value is None:
        logger.debug("account_absent", address=address.hex())
        return None
    try:
        acct = rlp.decode(value, sedes=StateAccount)
    except RLPException as e:
        raise MalformedValueError(f"account {address.hex()}: {e}") from e
    return Account(
        nonce=acct.nonce,
        balance=acct.balance,
        storage_root=acct.storage_root,
        code_hash=acct.code_hash,
    )


def verify_storage(storage_root: Hash32, slot: Bytes32, store: NodeReader) -> int:
    """Prove a storage slot against an account's storage root. Absent slots are 0."""
    value = verify_proof(storage_root, keccak(slot), store)
    if value is None:
        return 0
    try:
        return rlp.decode(value, sedes=big_endian_int)
    except RLPException as e:
        raise MalformedValueError(f"storage slot {slot.hex()}: {e}") from e
