"""
parastate: transaction parallelism analysis and state proof verification.

Records the state keys each transaction of a block reads and writes during
speculative execution, builds the minimal must-execute-before DAG over them,
and authenticates account and storage reads against a trusted state root
with Merkle-Patricia proofs.
"""

from parastate.core.types import (
    StateKey,
    AddressKey,
    SubpathKey,
    StorageKey,
    SubPath,
)
from parastate.deps.recorder import DependencyRecorder, TxDeps
from parastate.analysis.dag import ConflictDAG
from parastate.trie.store import ProofStore
from parastate.trie.proof import verify_proof

__version__ = "0.1.0"
__all__ = [
    "StateKey",
    "AddressKey",
    "SubpathKey",
    "StorageKey",
    "SubPath",
    "DependencyRecorder",
    "TxDeps",
    "ConflictDAG",
    "ProofStore",
    "verify_proof",
]
