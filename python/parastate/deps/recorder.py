"""Per-transaction state access recording.

The recorder stands in for the VM's state database during speculative
execution of a block. It never holds real state: every getter returns a zero
value and every call only records which state keys the current transaction
read or wrote.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator

from parastate.core.types import (
    Address,
    Bytes32,
    Hash32,
    SubPath,
    ZERO_HASH,
    address_prefix,
    storage_key,
    subpath_key,
)


@dataclass(slots=True)
class TxDeps:
    """Read and write key sets of one transaction."""

    index: int
    reads: set[str] = field(default_factory=set)
    writes: set[str] = field(default_factory=set)

    @property
    def id(self) -> str:
        return str(self.index)

    def cnt_deps(self) -> int:
        return len(self.reads) + len(self.writes)

    def has_read_dep(self, earlier: TxDeps) -> bool:
        """True if this transaction reads any key that ``earlier`` writes."""
        return not self.reads.isdisjoint(earlier.writes)


class DependencyRecorder:
    """Records state accesses per transaction index.

    ``tx_deps`` is the registry consumed by the DAG analyzer. Not safe for
    concurrent mutation; parallel speculation should shard by transaction
    and merge with :meth:`merge`.
    """

    def __init__(self, ignores: Iterable[Address | str] = ()) -> None:
        self.current_tx = 0
        self.tx_deps: dict[int, TxDeps] = {}
        self._ignore_prefixes: list[str] = []
        self.set_ignores(ignores)

    def set_current_tx(self, index: int) -> None:
        if index < 0:
            raise ValueError(f"transaction index must be non-negative, got {index}")
        self.current_tx = index

    def set_ignores(self, prefixes: Iterable[Address | str]) -> None:
        for prefix in prefixes:
            self._ignore_prefixes.append(address_prefix(prefix))

    @property
    def ignore_prefixes(self) -> tuple[str, ...]:
        return tuple(self._ignore_prefixes)

    def _ignored(self, key: str) -> bool:
        return any(key.startswith(pre) for pre in self._ignore_prefixes)

    def _current(self) -> TxDeps:
        deps = self.tx_deps.get(self.current_tx)
        if deps is None:
            deps = self.tx_deps[self.current_tx] = TxDeps(self.current_tx)
        return deps

    def read(self, key: str) -> None:
        if self._ignored(key):
            return
        self._current().reads.add(key)

    def write(self, key: str) -> None:
        if self._ignored(key):
            return
        self._current().writes.add(key)

    def for_each(self, put_dep: Callable[[int, str, bool], None]) -> None:
        """Call ``put_dep(tx_idx, key, is_write)`` for every recorded access.

        Enumeration order is unspecified.
        """
        for tx_idx, deps in self.tx_deps.items():
            for key in deps.reads:
                put_dep(tx_idx, key, False)
            for key in deps.writes:
                put_dep(tx_idx, key, True)

    def merge(self, other: DependencyRecorder) -> None:
        """Fold the accesses of a recorder that ran another shard of the block."""
        for tx_idx, deps in other.tx_deps.items():
            mine = self.tx_deps.get(tx_idx)
            if mine is None:
                mine = self.tx_deps[tx_idx] = TxDeps(tx_idx)
            mine.reads.update(k for k in deps.reads if not self._ignored(k))
            mine.writes.update(k for k in deps.writes if not self._ignored(k))

    def summary(self) -> str:
        count = len(self.tx_deps)
        reads = sum(len(d.reads) for d in self.tx_deps.values())
        writes = sum(len(d.writes) for d in self.tx_deps.values())
        avg_reads = reads / count if count else 0.0
        avg_writes = writes / count if count else 0.0
        return f"average deps: read {avg_reads:.2f}, write {avg_writes:.2f}"

    def __len__(self) -> int:
        return len(self.tx_deps)

    def __iter__(self) -> Iterator[TxDeps]:
        for index in sorted(self.tx_deps):
            yield self.tx_deps[index]

    # State database surface. Values returned are placeholders.

    def create_account(self, addr: Address) -> None:
        self.write(subpath_key(addr, SubPath.BALANCE))

    def sub_balance(self, addr: Address, amount: int = 0) -> None:
        self.get_balance(addr)
        self.write(subpath_key(addr, SubPath.BALANCE))

    def add_balance(self, addr: Address, amount: int = 0) -> None:
        self.get_balance(addr)
        self.write(subpath_key(addr, SubPath.BALANCE))

    def set_balance(self, addr: Address, amount: int = 0) -> None:
        self.write(subpath_key(addr, SubPath.BALANCE))

    def get_balance(self, addr: Address) -> int:
        self.read(subpath_key(addr, SubPath.BALANCE))
        return 0

    def get_nonce(self, addr: Address) -> int:
        self.read(subpath_key(addr, SubPath.NONCE))
        return 0

    def set_nonce(self, addr: Address, nonce: int = 0) -> None:
        self.write(subpath_key(addr, SubPath.NONCE))

    def get_code_hash(self, addr: Address) -> Hash32:
        self.read(subpath_key(addr, SubPath.CODE))
        return ZERO_HASH

    def get_code(self, addr: Address) -> bytes:
        self.read(subpath_key(addr, SubPath.CODE))
        return b""

    def get_code_size(self, addr: Address) -> int:
        self.read(subpath_key(addr, SubPath.CODE))
        return 0

    def set_code(self, addr: Address, code: bytes = b"") -> None:
        self.write(subpath_key(addr, SubPath.CODE))

    def get_committed_state(self, addr: Address, slot: Bytes32) -> Bytes32:
        self.read(storage_key(addr, slot))
        return ZERO_HASH

    def get_state(self, addr: Address, slot: Bytes32) -> Bytes32:
        self.read(storage_key(addr, slot))
        return ZERO_HASH

    def set_state(self, addr: Address, slot: Bytes32, value: Bytes32 = ZERO_HASH) -> None:
        self.write(storage_key(addr, slot))

    def suicide(self, addr: Address) -> bool:
        self.write(subpath_key(addr, SubPath.SUICIDE))
        self.write(subpath_key(addr, SubPath.BALANCE))
        return False

    def has_suicided(self, addr: Address) -> bool:
        self.read(subpath_key(addr, SubPath.SUICIDE))
        return False
