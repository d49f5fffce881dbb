"""Core package for DashManager.

This module exposes the domain models and both store variants so that
consumers of the package can simply import them from ``dashmanager``.
"""

from .core.models import Coordinates, Group, Location, Person, Territory, TerritoryImage
from .core.storage import LocalStore
from .data.store import DashStore

__all__ = [
    "Coordinates",
    "DashStore",
    "Group",
    "LocalStore",
    "Location",
    "Person",
    "Territory",
    "TerritoryImage",
]
