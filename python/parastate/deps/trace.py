"""Loading recorded access traces from disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import structlog

from parastate.core.types import Address, parse_key
from parastate.deps.recorder import DependencyRecorder, TxDeps

logger = structlog.get_logger()


class TraceError(ValueError):
    """Raised when an access trace document is malformed."""


def _keys(tx: dict[str, Any], field: str, index: int) -> list[str]:
    raw = tx.get(field, [])
    if not isinstance(raw, list):
        raise TraceError(f"transaction {index}: {field!r} must be a list")
    keys = []
    for key in raw:
        if not isinstance(key, str):
            raise TraceError(f"transaction {index}: {field!r} entries must be strings")
        try:
            parse_key(key)
        except ValueError as e:
            raise TraceError(f"transaction {index}: {e}") from e
        keys.append(key)
    return keys


def replay_trace(
    document: dict[str, Any],
    ignores: Iterable[Address | str] = (),
) -> DependencyRecorder:
    """Replay a trace document into a fresh recorder.

    The document has the form::

        {"ignores": ["0x...", ...],
         "transactions": [{"reads": [...], "writes": [...]}, ...]}

    Transaction ``i`` of the block is entry ``i`` of ``transactions``.
    """
    if not isinstance(document, dict):
        raise TraceError("trace document must be a mapping")

    transactions = document.get("transactions")
    if not isinstance(transactions, list):
        raise TraceError("trace document needs a 'transactions' list")

    extra_ignores = document.get("ignores", [])
    if not isinstance(extra_ignores, list):
        raise TraceError("'ignores' must be a list of addresses")

    recorder = DependencyRecorder()
    try:
        recorder.set_ignores(list(ignores) + extra_ignores)
    except (TypeError, ValueError) as e:
        raise TraceError(f"bad ignore list: {e}") from e

    for index, tx in enumerate(transactions):
        if not isinstance(tx, dict):
            raise TraceError(f"transaction {index} must be a mapping")
        recorder.set_current_tx(index)
        # transactions without recorded accesses still take part in the DAG
        recorder.tx_deps.setdefault(index, TxDeps(index))
        reads = _keys(tx, "reads", index)
        writes = _keys(tx, "writes", index)
        for key in reads:
            recorder.read(key)
        for key in writes:
            recorder.write(key)

    return recorder


def load_trace(path: Path, ignores: Iterable[Address | str] = ()) -> DependencyRecorder:
    """Load a JSON or YAML trace file."""
    with open(path) as f:
        text = f.read()

    if path.suffix in (".yaml", ".yml"):
        import yaml
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise TraceError(f"cannot parse {path}: {e}") from e
    else:
        try:
            document = json.loads(text)
        except ValueError as e:
            raise TraceError(f"cannot parse {path}: {e}") from e

    recorder = replay_trace(document, ignores)
    logger.info("trace_loaded", path=str(path), transactions=len(document["transactions"]))
    return recorder
