"""CLI entry point for parastate."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
import structlog
from eth_utils import decode_hex

from parastate.core.config import ParastateConfig
from parastate.core.logs import configure_logging

app = typer.Typer(
    name="parastate",
    help="Transaction parallelism analysis and Merkle-Patricia proof checks",
)

logger = structlog.get_logger()


def _load_config(config_path: Optional[Path], log_level: Optional[str]) -> ParastateConfig:
    config = (
        ParastateConfig.from_yaml(config_path)
        if config_path and config_path.exists()
        else ParastateConfig()
    )
    if log_level:
        level = log_level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise typer.BadParameter(f"unknown log level {log_level}")
        config.log_level = level
    configure_logging(config.log_level)
    return config


def _proof_nodes(proof_path: Path, section: str) -> list[str]:
    """Read proof nodes from a JSON array or an ``eth_getProof`` result."""
    with open(proof_path) as f:
        doc: Any = json.load(f)
    if isinstance(doc, dict):
        doc = doc.get("result", doc)
        if not isinstance(doc, dict):
            raise ValueError(f"{proof_path}: 'result' must be an eth_getProof object")
        if section == "storage":
            proofs = doc.get("storageProof")
            if not isinstance(proofs, list) or not proofs or not isinstance(proofs[0], dict):
                raise ValueError(f"{proof_path}: no storageProof entry")
            doc = proofs[0].get("proof")
        else:
            doc = doc.get("accountProof")
    if not isinstance(doc, list) or not all(isinstance(node, str) for node in doc):
        raise ValueError(f"{proof_path}: expected a list of hex encoded nodes")
    return doc


def _root_hash(text: str) -> bytes:
    raw = decode_hex(text)
    if len(raw) != 32:
        raise ValueError(f"{text} is not a 32 byte hash")
    return raw


def _slot(text: str) -> bytes:
    """Storage slots may be given without leading zeros."""
    raw = decode_hex(text)
    if len(raw) > 32:
        raise ValueError(f"{text} is longer than 32 bytes")
    return raw.rjust(32, b"\x00")


ConfigOption = typer.Option(None, "--config", "-c", help="Path to configuration file")
LogLevelOption = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR")


@app.command()
def analyze(
    trace_path: Path = typer.Argument(..., help="JSON or YAML access trace of a block"),
    ignore: list[str] = typer.Option(
        [],
        "--ignore", "-i",
        help="Address whose accesses are not recorded (repeatable)",
    ),
    config_path: Optional[Path] = ConfigOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Build the conflict DAG of a block and print its report."""
    from parastate.analysis.dag import ConflictDAG
    from parastate.deps.trace import TraceError, load_trace

    config = _load_config(config_path, log_level)
    try:
        recorder = load_trace(trace_path, [*config.analysis.ignore_addresses, *ignore])
    except (OSError, TraceError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    dag = ConflictDAG.build(recorder)
    dag.report(typer.echo)
    typer.echo(recorder.summary())
    logger.debug("critical_path", path=dag.critical_path())


@app.command()
def verify(
    root: str = typer.Argument(..., help="Trusted trie root hash"),
    key: str = typer.Argument(..., help="Hex encoded trie key"),
    proof_path: Path = typer.Argument(..., help="JSON list of hex encoded proof nodes"),
    config_path: Optional[Path] = ConfigOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Check a raw key against a trie root."""
    from parastate.trie import ProofError, ProofStore, verify_proof

    _load_config(config_path, log_level)
    try:
        store = ProofStore.from_hex_nodes(_proof_nodes(proof_path, "account"))
        value = verify_proof(_root_hash(root), decode_hex(key), store)
    except (OSError, ValueError, ProofError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    typer.echo("absent" if value is None else "0x" + value.hex())


@app.command()
def account(
    state_root: str = typer.Argument(..., help="Trusted state root"),
    address: str = typer.Argument(..., help="Account address"),
    proof_path: Path = typer.Argument(..., help="accountProof list or eth_getProof result"),
    config_path: Optional[Path] = ConfigOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Prove an account against a state root."""
    from parastate.trie import ProofError, ProofStore, verify_account

    _load_config(config_path, log_level)
    try:
        addr = decode_hex(address)
        if len(addr) != 20:
            raise ValueError(f"{address} is not a 20 byte address")
        store = ProofStore.from_hex_nodes(_proof_nodes(proof_path, "account"))
        acct = verify_account(_root_hash(state_root), addr, store)
    except (OSError, ValueError, ProofError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    if acct is None:
        typer.echo("absent")
        return
    typer.echo(f"Nonce: {acct.nonce}")
    typer.echo(f"Balance: {acct.balance}")
    typer.echo(f"Storage root: 0x{acct.storage_root.hex()}")
    typer.echo(f"Code hash: 0x{acct.code_hash.hex()}")


@app.command()
def storage(
    storage_root: str = typer.Argument(..., help="Storage root of the account"),
    slot: str = typer.Argument(..., help="Storage slot"),
    proof_path: Path = typer.Argument(..., help="Storage proof list or eth_getProof result"),
    config_path: Optional[Path] = ConfigOption,
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Prove a storage slot against an account's storage root."""
    from parastate.trie import ProofError, ProofStore, verify_storage

    _load_config(config_path, log_level)
    try:
        store = ProofStore.from_hex_nodes(_proof_nodes(proof_path, "storage"))
        value = verify_storage(_root_hash(storage_root), _slot(slot), store)
    except (OSError, ValueError, ProofError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    typer.echo(str(value))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
