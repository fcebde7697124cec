"""
Application services module.
"""

from mortgage_planner.services.properties import (
    InMemoryPropertyProvider,
    PropertyNotFoundError,
    PropertyProvider,
    get_property_provider,
)

__all__ = [
    "InMemoryPropertyProvider",
    "PropertyNotFoundError",
    "PropertyProvider",
    "get_property_provider",
]
