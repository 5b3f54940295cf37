"""Nibble path encodings used by the Merkle-Patricia trie.

Three forms of the same key appear in the trie:

- keybytes: the raw key as stored by callers,
- hex: one nibble per element, high nibble first, with an optional
  terminator (16) marking that a value follows,
- compact: the hex-prefix encoding stored in short nodes. The high nibble
  of the first byte carries the flags: bit 1 is "leaf" (terminator present)
  and bit 0 is "odd length", in which case the low nibble is the first
  path nibble.
"""

from __future__ import annotations

from typing import Sequence

TERMINATOR = 16

Nibbles = tuple[int, ...]


def keybytes_to_hex(key: bytes) -> Nibbles:
    nibbles: list[int] = []
    for b in key:
        nibbles.append(b >> 4)
        nibbles.append(b & 0x0F)
    nibbles.append(TERMINATOR)
    return tuple(nibbles)


def hex_to_keybytes(nibbles: Sequence[int]) -> bytes:
    if has_term(nibbles):
        nibbles = nibbles[:-1]
    if len(nibbles) % 2:
        raise ValueError("cannot convert odd length nibble path to bytes")
    return bytes((nibbles[i] << 4) | nibbles[i + 1] for i in range(0, len(nibbles), 2))


def has_term(nibbles: Sequence[int]) -> bool:
    return len(nibbles) > 0 and nibbles[-1] == TERMINATOR


def compact_to_hex(compact: bytes) -> Nibbles:
    if not compact:
        return ()
    flags = compact[0] >> 4
    if flags > 3:
        raise ValueError(f"invalid compact path flags {flags:#x}")

    base = keybytes_to_hex(compact)
    # extension paths carry no terminator
    if flags < 2:
        base = base[:-1]
    chop = 2 - (flags & 1)
    return base[chop:]


def hex_to_compact(nibbles: Sequence[int]) -> bytes:
    terminator = 0
    if has_term(nibbles):
        terminator = 1
        nibbles = nibbles[:-1]

    first = terminator << 5
    if len(nibbles) % 2:
        first |= 1 << 4
        first |= nibbles[0]
        nibbles = nibbles[1:]

    out = bytearray([first])
    for i in range(0, len(nibbles), 2):
        out.append((nibbles[i] << 4) | nibbles[i + 1])
    return bytes(out)


def prefix_len(a: Sequence[int], b: Sequence[int]) -> int:
    """Length of the common prefix of two nibble paths."""
    length = min(len(a), len(b))
    for i in range(length):
        if a[i] != b[i]:
            return i
    return length
