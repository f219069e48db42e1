"""
Registries Package

Storage backends for the two patient stores, all following the
PrimaryRegistry / MirrorRegistry interfaces.

Available Backends:
- mongo: MongoPrimaryRegistry + MongoMirrorRegistry (two independent deployments)
- memory: MemoryPrimaryRegistry + MemoryMirrorRegistry (tests, local development)
"""

from typing import Tuple

from .base_registry import (
    BaseRegistry,
    PrimaryRegistry,
    MirrorRegistry,
    PatientChange,
    LEDGER_MODALITIES,
    new_push_key,
)
from .memory import MemoryPrimaryRegistry, MemoryMirrorRegistry
from .mongo import MongoPrimaryRegistry, MongoMirrorRegistry

__all__ = [
    'BaseRegistry',
    'PrimaryRegistry',
    'MirrorRegistry',
    'PatientChange',
    'LEDGER_MODALITIES',
    'new_push_key',
    'MemoryPrimaryRegistry',
    'MemoryMirrorRegistry',
    'MongoPrimaryRegistry',
    'MongoMirrorRegistry',
]

# Backend registry for dynamic loading
REGISTRY_BACKENDS = {
    'mongo': (MongoPrimaryRegistry, MongoMirrorRegistry),
    'memory': (MemoryPrimaryRegistry, MemoryMirrorRegistry),
}


def create_registries(backend: str, config) -> Tuple[PrimaryRegistry, MirrorRegistry]:
    """
    Create the primary and mirror registries for a backend

    Args:
        backend: Name of the backend ('mongo', 'memory')
        config: ApplicationConfig supplying the per-registry settings

    Raises:
        ValueError: If backend name is not recognized
    """
    backend = backend.lower()

    if backend not in REGISTRY_BACKENDS:
        available = ', '.join(REGISTRY_BACKENDS.keys())
        raise ValueError(f"Unknown registry backend '{backend}'. Available backends: {available}")

    if backend == 'memory':
        return MemoryPrimaryRegistry(), MemoryMirrorRegistry()

    primary_class, mirror_class = REGISTRY_BACKENDS[backend]
    return primary_class(config.primary), mirror_class(config.mirror)
