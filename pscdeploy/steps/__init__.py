"""
Idempotent imperative steps against the compute API.
"""

from .resources import CapabilityChange, ImperativeResourceStep, ResourceDescriptor
from .backends import BackendWiring

__all__ = [
    "CapabilityChange",
    "ImperativeResourceStep",
    "ResourceDescriptor",
    "BackendWiring",
]
