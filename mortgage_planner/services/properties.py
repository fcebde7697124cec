"""
Property data provider.

Defines the interface the API uses to fetch, list and update rental
properties, and an in-memory implementation seeded with sample data.
Durable storage plugs in behind the same interface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from functools import lru_cache
from typing import Dict, Iterable, List, Optional

from mortgage_planner.calculations.cashflow import PropertySnapshot
from mortgage_planner.config import Settings, get_settings
from mortgage_planner.services.seed_data import sample_properties

logger = logging.getLogger(__name__)


class PropertyProviderError(Exception):
    """Base exception for property provider errors."""


class PropertyNotFoundError(PropertyProviderError):
    """Raised when a requested property does not exist."""


class PropertyProvider(ABC):
    """
    Abstract base class for property data providers.

    Implementations return immutable PropertySnapshot objects; updates are
    made by saving a new snapshot.
    """

    @abstractmethod
    def get_property(self, property_id: str) -> PropertySnapshot:
        """
        Fetch a single property.

        Raises:
            PropertyNotFoundError: If no property has that id
        """

    @abstractmethod
    def list_properties(self) -> List[PropertySnapshot]:
        """Return every property, ordered by id."""

    @abstractmethod
    def save_property(self, snapshot: PropertySnapshot) -> PropertySnapshot:
        """Insert or replace a property and return what was stored."""

    def update_property(self, property_id: str, **changes) -> PropertySnapshot:
        """Apply field changes to an existing property and save it."""
        current = self.get_property(property_id)
        updated = replace(current, **changes)
        logger.info("Updating property %s: %s", property_id, ", ".join(sorted(changes)))
        return self.save_property(updated)


class InMemoryPropertyProvider(PropertyProvider):
    """Property provider backed by a dict, for development and tests."""

    def __init__(self, properties: Optional[Iterable[PropertySnapshot]] = None):
        self._properties: Dict[str, PropertySnapshot] = {}
        for snapshot in properties or []:
            self._properties[snapshot.property_id] = snapshot

    def get_property(self, property_id: str) -> PropertySnapshot:
        try:
            return self._properties[property_id]
        except KeyError:
            raise PropertyNotFoundError(f"Property not found: {property_id}") from None

    def list_properties(self) -> List[PropertySnapshot]:
        return [self._properties[key] for key in sorted(self._properties)]

    def save_property(self, snapshot: PropertySnapshot) -> PropertySnapshot:
        self._properties[snapshot.property_id] = snapshot
        return snapshot


def create_property_provider(settings: Settings) -> PropertyProvider:
    """
    Create a property provider based on configuration.

    Raises:
        ValueError: If the configured provider type is unknown
    """
    if settings.property_provider == "memory":
        provider = InMemoryPropertyProvider(sample_properties() if settings.seed_sample_data else [])
        logger.info("Using in-memory property provider (%d properties)", len(provider.list_properties()))
        return provider

    raise ValueError(f"Unsupported property provider: {settings.property_provider}")


@lru_cache()
def get_property_provider() -> PropertyProvider:
    """FastAPI dependency returning the application-wide provider."""
    return create_property_provider(get_settings())
