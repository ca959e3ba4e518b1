"""Storage backends -- one contract, several MongoDB client styles.

Architecture::

    Storer (storer.base)              Abstract contract
        |-- SessionMongoStorer        session checked out per call (pymongo)
        |-- PooledMongoStorer         one shared pooled client (pymongo)
        |-- FakeStorer                in-memory capture/replay (storer.fake)

    StorerRegistry (registry.py)      backend name -> storer class
    open_storer()                     StorerSettings -> ready storer

Guardrails:
    ❌ ``storer = PooledMongoStorer(uri)`` scattered through application code
    ✅ ``storer = open_storer()`` once, then depend on ``Storer`` only
    ❌ ``except pymongo.errors.OperationFailure``
    ✅ ``except storer.errors.InvalidArgumentError``
"""

from .pooled import PooledMongoStorer
from .registry import StorerRegistry, open_storer, storer_registry
from .session import SessionMongoStorer

__all__ = [
    "SessionMongoStorer",
    "PooledMongoStorer",
    "StorerRegistry",
    "storer_registry",
    "open_storer",
]
