from typing import Callable, Sequence

import pytest

from parastate.core.types import SubPath, storage_key, subpath_key
from parastate.deps.recorder import DependencyRecorder, TxDeps


def addr(n: int) -> bytes:
    return bytes([n]) * 20


def slot(n: int) -> bytes:
    return n.to_bytes(32, "big")


@pytest.fixture
def keys() -> list[str]:
    """A handful of distinct canonical keys, K0..K5."""
    return [
        subpath_key(addr(0xA0), SubPath.BALANCE),
        subpath_key(addr(0xA1), SubPath.NONCE),
        storage_key(addr(0xA2), slot(1)),
        storage_key(addr(0xA2), slot(2)),
        subpath_key(addr(0xA3), SubPath.CODE),
        subpath_key(addr(0xA4), SubPath.SUICIDE),
    ]


@pytest.fixture
def make_recorder() -> Callable[[Sequence[tuple[Sequence[str], Sequence[str]]]], DependencyRecorder]:
    """Build a recorder from ``[(reads, writes), ...]``, one entry per transaction."""

    def make(txs):
        recorder = DependencyRecorder()
        for i, (reads, writes) in enumerate(txs):
            recorder.set_current_tx(i)
            recorder.tx_deps.setdefault(i, TxDeps(i))
            for key in reads:
                recorder.read(key)
            for key in writes:
                recorder.write(key)
        return recorder

    return make
