import pytest

from parastate.core.types import SubPath, ZERO_HASH, storage_key, subpath_key
from parastate.deps.recorder import DependencyRecorder, TxDeps

from conftest import addr, slot

A = addr(0x42)
H = slot(7)

BAL = subpath_key(A, SubPath.BALANCE)
NONCE = subpath_key(A, SubPath.NONCE)
CODE = subpath_key(A, SubPath.CODE)
SUICIDE = subpath_key(A, SubPath.SUICIDE)
STORE = storage_key(A, H)


@pytest.mark.parametrize(
    "call, args, returned, reads, writes",
    [
        ("create_account", (A,), None, set(), {BAL}),
        ("sub_balance", (A, 5), None, {BAL}, {BAL}),
        ("add_balance", (A, 5), None, {BAL}, {BAL}),
        ("set_balance", (A, 5), None, set(), {BAL}),
        ("get_balance", (A,), 0, {BAL}, set()),
        ("get_nonce", (A,), 0, {NONCE}, set()),
        ("set_nonce", (A, 3), None, set(), {NONCE}),
        ("get_code", (A,), b"", {CODE}, set()),
        ("get_code_hash", (A,), ZERO_HASH, {CODE}, set()),
        ("get_code_size", (A,), 0, {CODE}, set()),
        ("set_code", (A, b"\x60\x00"), None, set(), {CODE}),
        ("get_state", (A, H), ZERO_HASH, {STORE}, set()),
        ("get_committed_state", (A, H), ZERO_HASH, {STORE}, set()),
        ("set_state", (A, H, slot(1)), None, set(), {STORE}),
        ("suicide", (A,), False, set(), {SUICIDE, BAL}),
        ("has_suicided", (A,), False, {SUICIDE}, set()),
    ],
)
def test_state_access_surface(call, args, returned, reads, writes):
    recorder = DependencyRecorder()
    recorder.set_current_tx(3)

    assert getattr(recorder, call)(*args) == returned

    deps = recorder.tx_deps[3]
    assert deps.reads == reads
    assert deps.writes == writes


def test_tx_deps_created_lazily():
    recorder = DependencyRecorder()
    recorder.set_current_tx(2)
    assert len(recorder) == 0

    recorder.get_nonce(A)
    assert list(recorder.tx_deps) == [2]
    assert recorder.tx_deps[2].id == "2"


def test_accesses_route_to_current_tx():
    recorder = DependencyRecorder()
    recorder.set_current_tx(0)
    recorder.set_balance(A)
    recorder.set_current_tx(1)
    recorder.get_balance(A)
    recorder.get_balance(A)

    assert recorder.tx_deps[0].writes == {BAL}
    assert recorder.tx_deps[1].reads == {BAL}
    assert recorder.tx_deps[1].cnt_deps() == 1


def test_negative_tx_index_rejected():
    with pytest.raises(ValueError):
        DependencyRecorder().set_current_tx(-1)


@pytest.mark.parametrize("ignore", [addr(0xEE), "0x" + "ee" * 20, "EE" * 20])
def test_ignored_addresses_are_not_recorded(ignore):
    ignored = addr(0xEE)
    recorder = DependencyRecorder()
    recorder.set_ignores([ignore])

    recorder.set_current_tx(0)
    recorder.add_balance(ignored)
    recorder.set_state(ignored, H)
    recorder.suicide(ignored)
    recorder.get_code(ignored)
    recorder.read(ignored.hex())
    recorder.write(ignored.hex() + ":1")
    assert len(recorder) == 0

    recorder.get_nonce(A)
    seen = []
    recorder.for_each(lambda tx, key, is_write: seen.append(key))
    assert seen == [NONCE]
    assert not any(key.startswith(ignored.hex()) for key in seen)


def test_set_ignores_accumulates():
    recorder = DependencyRecorder(ignores=[addr(1)])
    recorder.set_ignores([addr(2)])
    assert recorder.ignore_prefixes == (addr(1).hex(), addr(2).hex())


def test_for_each_enumerates_every_access():
    recorder = DependencyRecorder()
    recorder.set_current_tx(0)
    recorder.sub_balance(A)
    recorder.set_current_tx(1)
    recorder.get_state(A, H)

    seen = set()
    recorder.for_each(lambda tx, key, is_write: seen.add((tx, key, is_write)))
    assert seen == {(0, BAL, False), (0, BAL, True), (1, STORE, False)}


def test_has_read_dep_is_read_after_write_only():
    earlier = TxDeps(0, reads={"x"}, writes={"y"})
    later = TxDeps(1, reads={"y"}, writes={"x"})
    assert later.has_read_dep(earlier)
    assert not earlier.has_read_dep(later)
    # write-after-write is not a read dependency
    assert not TxDeps(2, writes={"y"}).has_read_dep(earlier)


def test_summary():
    recorder = DependencyRecorder()
    assert recorder.summary() == "average deps: read 0.00, write 0.00"

    recorder.set_current_tx(0)
    recorder.sub_balance(A)
    recorder.set_current_tx(1)
    recorder.get_state(A, H)
    recorder.get_nonce(A)
    recorder.set_code(A)
    assert recorder.summary() == "average deps: read 1.50, write 1.00"


def test_merge_shards():
    left = DependencyRecorder(ignores=[addr(0xEE)])
    left.set_current_tx(0)
    left.set_balance(A)

    right = DependencyRecorder()
    right.set_current_tx(1)
    right.get_balance(A)
    right.get_balance(addr(0xEE))
    right.set_current_tx(0)
    right.get_nonce(A)

    left.merge(right)
    assert left.tx_deps[0].writes == {BAL}
    assert left.tx_deps[0].reads == {NONCE}
    assert left.tx_deps[1].reads == {BAL}
    assert [d.index for d in left] == [0, 1]
