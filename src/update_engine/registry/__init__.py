"""
Package registry access for the update engine.
"""

from update_engine.registry.client import RegistryClient
from update_engine.registry.npm import NpmRegistryClient, encode_package_name

__all__ = [
    "RegistryClient",
    "NpmRegistryClient",
    "encode_package_name",
]
