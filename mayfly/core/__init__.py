"""Core mayfly functionality."""

from __future__ import annotations

from mayfly.core.config import RunConfig
from mayfly.core.interfaces import ComputeProvisioner, NetworkRegistrar, Reporter
from mayfly.core.orchestrator import LifecycleOrchestrator
from mayfly.core.signals import CancellationToken, ShutdownSignals
from mayfly.core.state import PersistedRecord, StateStore

__all__ = [
    "CancellationToken",
    "ComputeProvisioner",
    "LifecycleOrchestrator",
    "NetworkRegistrar",
    "PersistedRecord",
    "Reporter",
    "RunConfig",
    "ShutdownSignals",
    "StateStore",
]
