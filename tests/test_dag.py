import random

import pytest

from parastate.analysis.dag import ConflictDAG
from parastate.deps.recorder import DependencyRecorder, TxDeps


def test_single_writer_chain(make_recorder, keys):
    k0, k1 = keys[:2]
    recorder = make_recorder([
        ([], [k0]),
        ([k0], [k1]),
        ([k1], []),
    ])
    dag = ConflictDAG.build(recorder)

    assert dag.edges() == [(0, 1), (1, 2)]
    assert dag.report_lines() == [
        "(3, 4) 0->1->2",
        "max chain length: 3 of 3 (100.0%)",
        "max dep count: 4 of 4 (100.0%)",
    ]


def test_disjoint_roots(make_recorder, keys):
    k0, k1 = keys[:2]
    recorder = make_recorder([
        ([], [k0]),
        ([], [k1]),
        ([k0], []),
        ([k1], []),
    ])
    dag = ConflictDAG.build(recorder)

    assert dag.edges() == [(0, 2), (1, 3)]
    assert dag.roots() == [0, 1]
    assert dag.report_lines() == [
        "(2, 2) 0->2",
        "(2, 2) 1->3",
        "max chain length: 2 of 4 (50.0%)",
        "max dep count: 2 of 4 (50.0%)",
    ]


def test_nearest_writer_wins(make_recorder, keys):
    k = keys[0]
    recorder = make_recorder([
        ([], [k]),
        ([], [k]),
        ([k], []),
    ])
    dag = ConflictDAG.build(recorder)

    assert dag.edges() == [(1, 2)]
    assert dag.parent(2) == 1
    assert dag.report_lines() == [
        "(1, 1) 0",
        "(2, 2) 1->2",
        "max chain length: 2 of 3 (66.7%)",
        "max dep count: 2 of 3 (66.7%)",
    ]


def test_pure_reads_are_independent(make_recorder, keys):
    recorder = make_recorder([
        ([keys[0]], []),
        ([keys[0]], []),
        ([keys[0]], []),
    ])
    dag = ConflictDAG.build(recorder)

    assert dag.edges() == []
    assert dag.vertices() == [0, 1, 2]
    assert dag.report_lines() == [
        "(1, 1) 0",
        "(1, 1) 1",
        "(1, 1) 2",
        "max chain length: 1 of 3 (33.3%)",
        "max dep count: 1 of 3 (33.3%)",
    ]


def test_write_after_read_and_write_after_write_are_not_edges(make_recorder, keys):
    k = keys[0]
    recorder = make_recorder([
        ([k], [k]),
        ([], [k]),
        ([k], [k]),
    ])
    dag = ConflictDAG.build(recorder)
    # tx1 only overwrites k, tx2 reads the value tx1 wrote
    assert dag.edges() == [(1, 2)]


def test_empty_registry():
    dag = ConflictDAG.build(DependencyRecorder())
    assert len(dag) == 0
    assert dag.roots() == []
    assert dag.critical_path() == []
    assert dag.report_lines() == [
        "max chain length: 0 of 0 (0.0%)",
        "max dep count: 0 of 0 (0.0%)",
    ]


def test_vertex_zero_always_present():
    dag = ConflictDAG.build({0: TxDeps(0)})
    assert dag.vertices() == [0]
    assert dag.report_lines()[0] == "(1, 0) 0"


def test_sparse_registry_fills_gaps(keys):
    k = keys[0]
    registry = {
        0: TxDeps(0, writes={k}),
        3: TxDeps(3, reads={k}),
    }
    dag = ConflictDAG.build(registry)
    assert dag.vertices() == [0, 1, 2, 3]
    assert dag.edges() == [(0, 3)]


def test_descendants_and_critical_path(make_recorder, keys):
    k0, k1, k2 = keys[:3]
    recorder = make_recorder([
        ([], [k0]),        # 0
        ([k0], [k1]),      # 1 <- 0
        ([k0], [k2]),      # 2 <- 0
        ([k1], []),        # 3 <- 1
        ([k2], [k1]),      # 4 <- 2
        ([k1], []),        # 5 <- 4
    ])
    dag = ConflictDAG.build(recorder)

    assert dag.edges() == [(0, 1), (0, 2), (1, 3), (2, 4), (4, 5)]
    assert dag.descendants(0) == {1, 2, 3, 4, 5}
    assert dag.descendants(2) == {4, 5}
    assert dag.children(0) == [1, 2]
    assert dag.critical_path() == [0, 2, 4, 5]


def test_add_edge_rules():
    dag = ConflictDAG()
    for i in range(3):
        dag.add_vertex(TxDeps(i))

    dag.add_edge(0, 2)
    dag.add_edge(0, 2)
    with pytest.raises(ValueError):
        dag.add_edge(1, 2)
    with pytest.raises(ValueError):
        dag.add_edge(2, 1)
    with pytest.raises(KeyError):
        dag.add_edge(0, 7)
    assert dag.in_degree(2) == 1
    assert dag.in_degree(1) == 0


def _random_recorder(seed, num_tx=40, num_keys=12):
    rng = random.Random(seed)
    pool = [f"{i:040x}:{rng.randint(1, 4)}" for i in range(num_keys)]
    recorder = DependencyRecorder()
    for i in range(num_tx):
        recorder.set_current_tx(i)
        recorder.tx_deps.setdefault(i, TxDeps(i))
        for key in rng.sample(pool, rng.randint(0, 3)):
            recorder.read(key)
        for key in rng.sample(pool, rng.randint(0, 2)):
            recorder.write(key)
    return recorder


@pytest.mark.parametrize("seed", range(8))
def test_dag_properties(seed):
    recorder = _random_recorder(seed)
    deps = recorder.tx_deps
    dag = ConflictDAG.build(recorder)

    assert dag.vertices() == sorted(deps)

    for src, dst in dag.edges():
        # edges point forward, so no cycles
        assert src < dst
        # the parent wrote something the child reads
        assert deps[dst].reads & deps[src].writes
        # and nobody in between did
        for mid in range(src + 1, dst):
            assert not deps[dst].reads & deps[mid].writes

    for v in dag.vertices():
        assert dag.in_degree(v) <= 1
        if dag.parent(v) is None:
            assert not any(deps[v].reads & deps[j].writes for j in range(v))

    per_root = [line for line in dag.report_lines() if line.startswith("(")]
    total = sum(int(line[1:].split(",")[1].split(")")[0]) for line in per_root)
    assert total == sum(d.cnt_deps() for d in deps.values())
    assert dag.report_lines()[-1].startswith("max dep count: ")
    assert f" of {total} (" in dag.report_lines()[-1]
