"""Adapters — tool bindings for the external collaborators.

Public re-exports for convenient access.
"""

from wpstack.adapters.base import Adapter, ExecutionContext, OperationAdapter
from wpstack.adapters.mock import MockAdapter
from wpstack.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "OperationAdapter",
]
