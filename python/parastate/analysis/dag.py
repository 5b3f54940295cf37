"""Transaction conflict DAG built from recorded read/write sets."""

from __future__ import annotations

from typing import Callable, Iterator, Mapping

import structlog

from parastate.deps.recorder import DependencyRecorder, TxDeps

logger = structlog.get_logger()


def _percent(part: int, whole: int) -> str:
    if whole == 0:
        return "0.0"
    return f"{part * 100.0 / whole:.1f}"


class ConflictDAG:
    """Must-execute-before graph over the transactions of one block.

    Each transaction gets at most one parent: the nearest earlier transaction
    that wrote a key it reads. Edges always point from a lower index to a
    higher one, so the graph is acyclic by construction. Disjoint roots are
    transaction subsets that can execute in parallel.
    """

    def __init__(self) -> None:
        self._deps: dict[int, TxDeps] = {}
        self._children: dict[int, list[int]] = {}
        self._parent: dict[int, int] = {}

    @classmethod
    def build(cls, registry: DependencyRecorder | Mapping[int, TxDeps]) -> ConflictDAG:
        """Build the DAG for transactions ``0..N-1`` of a registry.

        Indices the registry never saw are treated as transactions without
        any accesses, so every index up to the highest one is a vertex.
        """
        tx_deps = registry.tx_deps if isinstance(registry, DependencyRecorder) else registry
        dag = cls()
        if not tx_deps:
            logger.debug("dag_built", vertices=0, edges=0, roots=0)
            return dag

        count = max(tx_deps) + 1
        deps = [tx_deps.get(i) or TxDeps(i) for i in range(count)]

        dag.add_vertex(deps[0])
        for i in range(count - 1, 0, -1):
            tx_to = deps[i]
            dag.add_vertex(tx_to)
            for j in range(i - 1, -1, -1):
                tx_from = deps[j]
                if tx_to.has_read_dep(tx_from):
                    dag.add_vertex(tx_from)
                    dag.add_edge(j, i)
                    # nothing before j can be a nearer writer
                    break

        logger.debug(
            "dag_built",
            vertices=len(dag),
            edges=len(dag._parent),
            roots=len(dag.roots()),
        )
        return dag

    def add_vertex(self, deps: TxDeps) -> int:
        """Add a vertex for ``deps``; adding the same index twice is a no-op."""
        if deps.index not in self._deps:
            self._deps[deps.index] = deps
            self._children[deps.index] = []
        return deps.index

    def add_edge(self, src: int, dst: int) -> None:
        if src not in self._deps or dst not in self._deps:
            raise KeyError(f"unknown vertex in edge {src}->{dst}")
        if src >= dst:
            raise ValueError(f"edge {src}->{dst} must point to a later transaction")
        if dst in self._parent:
            if self._parent[dst] == src:
                return
            raise ValueError(f"transaction {dst} already depends on {self._parent[dst]}")
        self._parent[dst] = src
        self._children[src].append(dst)

    def vertex(self, index: int) -> TxDeps:
        return self._deps[index]

    def vertices(self) -> list[int]:
        return sorted(self._deps)

    def edges(self) -> list[tuple[int, int]]:
        return sorted((src, dst) for dst, src in self._parent.items())

    def parent(self, index: int) -> int | None:
        return self._parent.get(index)

    def children(self, index: int) -> list[int]:
        return sorted(self._children[index])

    def in_degree(self, index: int) -> int:
        return 1 if index in self._parent else 0

    def roots(self) -> list[int]:
        return [v for v in sorted(self._deps) if v not in self._parent]

    def descendants(self, index: int) -> set[int]:
        seen: set[int] = set()
        stack = list(self._children[index])
        while stack:
            v = stack.pop()
            if v in seen:
                continue
            seen.add(v)
            stack.extend(self._children[v])
        return seen

    def critical_path(self) -> list[int]:
        """Longest root-to-leaf chain; ties go to the smallest indices."""
        depth: dict[int, int] = {}
        best_child: dict[int, int | None] = {}
        # children always have larger indices, so walk from the top down
        for v in sorted(self._deps, reverse=True):
            best: int | None = None
            for c in sorted(self._children[v]):
                if best is None or depth[c] > depth[best]:
                    best = c
            best_child[v] = best
            depth[v] = 1 + (depth[best] if best is not None else 0)

        start: int | None = None
        for r in self.roots():
            if start is None or depth[r] > depth[start]:
                start = r

        path: list[int] = []
        node = start
        while node is not None:
            path.append(node)
            node = best_child[node]
        return path

    def report(self, out: Callable[[str], None]) -> None:
        """Emit one line per root plus the chain-length and dep-count summary."""
        max_desc = 0
        max_deps = 0
        total_deps = 0
        for root in self.roots():
            desc = self.descendants(root)
            ids = sorted(desc | {root})
            cnt_deps = sum(self._deps[v].cnt_deps() for v in ids)
            out(f"({len(ids)}, {cnt_deps}) {'->'.join(str(v) for v in ids)}")

            max_desc = max(max_desc, len(desc))
            max_deps = max(max_deps, cnt_deps)
            total_deps += cnt_deps

        num_tx = len(self._deps)
        chain = max_desc + 1 if num_tx else 0
        out(f"max chain length: {chain} of {num_tx} ({_percent(chain, num_tx)}%)")
        out(f"max dep count: {max_deps} of {total_deps} ({_percent(max_deps, total_deps)}%)")

    def report_lines(self) -> list[str]:
        lines: list[str] = []
        self.report(lines.append)
        return lines

    def __len__(self) -> int:
        return len(self._deps)

    def __iter__(self) -> Iterator[TxDeps]:
        for index in sorted(self._deps):
            yield self._deps[index]

    def __contains__(self, index: object) -> bool:
        return index in self._deps
