"""In-memory entity collections shared by the remote and local stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from typing import TypeVar

from ..core.models import DashboardStats, Group, Location, Person, Territory, now_ms
from ..errors import NotFoundError

log = logging.getLogger("dashmanager.state")

COLLECTIONS = ("people", "groups", "locations", "territories")

Listener = Callable[[str], None]
Entity = TypeVar("Entity", Person, Group, Location, Territory)


def _matches(term: str, *fields: str | None) -> bool:
    return any(term in (f or "").lower() for f in fields)


def next_timestamp(previous: int) -> int:
    """Current epoch milliseconds, forced past ``previous``."""
    return max(now_ms(), previous + 1)


class EntityState(ABC):
    """Owns the four collections and notifies subscribers on change.

    Consumers read through ``list_*``/``get_*``, which return copies, and
    mutate only through the operations defined by the concrete stores.
    """

    def __init__(self) -> None:
        self._people: dict[str, Person] = {}
        self._groups: dict[str, Group] = {}
        self._locations: dict[str, Location] = {}
        self._territories: dict[str, Territory] = {}
        self._listeners: list[Listener] = []
        self.search_term = ""

    @abstractmethod
    async def load(self) -> bool:
        """Replace the collections from the backing store."""

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------
    def list_people(self) -> tuple[Person, ...]:
        return tuple(p.model_copy(deep=True) for p in self._people.values())

    def list_groups(self) -> tuple[Group, ...]:
        return tuple(g.model_copy(deep=True) for g in self._groups.values())

    def list_locations(self) -> tuple[Location, ...]:
        return tuple(loc.model_copy(deep=True) for loc in self._locations.values())

    def list_territories(self) -> tuple[Territory, ...]:
        return tuple(t.model_copy(deep=True) for t in self._territories.values())

    def get_person(self, person_id: str) -> Person | None:
        person = self._people.get(person_id)
        return person.model_copy(deep=True) if person else None

    def get_group(self, group_id: str) -> Group | None:
        group = self._groups.get(group_id)
        return group.model_copy(deep=True) if group else None

    def get_location(self, location_id: str) -> Location | None:
        location = self._locations.get(location_id)
        return location.model_copy(deep=True) if location else None

    def get_territory(self, territory_id: str) -> Territory | None:
        territory = self._territories.get(territory_id)
        return territory.model_copy(deep=True) if territory else None

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(collection_name)`` after every change.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, *collections: str) -> None:
        for name in collections:
            for listener in list(self._listeners):
                try:
                    listener(name)
                except Exception:
                    log.exception("Listener %r failed for %s", listener, name)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def set_search_term(self, term: str) -> None:
        self.search_term = term

    def filtered_people(self) -> list[Person]:
        term = self.search_term.lower()
        return [p for p in self.list_people() if _matches(term, p.name, p.email)]

    def filtered_groups(self) -> list[Group]:
        term = self.search_term.lower()
        return [g for g in self.list_groups() if _matches(term, g.name, g.description)]

    def filtered_locations(self) -> list[Location]:
        term = self.search_term.lower()
        return [
            loc for loc in self.list_locations() if _matches(term, loc.name, loc.address)
        ]

    def filtered_territories(self) -> list[Territory]:
        term = self.search_term.lower()
        return [
            t for t in self.list_territories() if _matches(term, t.name, t.description)
        ]

    def stats(self) -> DashboardStats:
        return DashboardStats(
            people=len(self._people),
            groups=len(self._groups),
            locations=len(self._locations),
            visited_locations=sum(1 for loc in self._locations.values() if loc.visited),
            territories=len(self._territories),
        )

    # ------------------------------------------------------------------
    # Group membership
    # ------------------------------------------------------------------
    @abstractmethod
    async def update_group(self, group: Group) -> Group:
        """Persist ``group`` and return the stored copy."""

    async def add_group_members(self, group_id: str, person_ids: Iterable[str]) -> Group:
        group = self._existing(self._groups, group_id, "group")
        return await self.update_group(group.with_members_added(person_ids))

    async def remove_group_members(self, group_id: str, person_ids: Iterable[str]) -> Group:
        group = self._existing(self._groups, group_id, "group")
        return await self.update_group(group.with_members_removed(person_ids))

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------
    @staticmethod
    def _existing(collection: dict[str, Entity], entity_id: str | None, kind: str) -> Entity:
        if entity_id is None or entity_id not in collection:
            raise NotFoundError(f"Unknown {kind} id: {entity_id!r}")
        return collection[entity_id]

    @staticmethod
    def _replace(collection: dict[str, Entity], entity: Entity) -> bool:
        # an entity removed while its update was in flight stays removed
        if entity.id not in collection:
            return False
        collection[entity.id] = entity
        return True

    def _strip_person_from_groups(
        self, person_id: str, stamps: Mapping[str, int] | None = None
    ) -> list[Group]:
        """Drop ``person_id`` from every group holding it.

        ``stamps`` supplies the new ``updated_at`` per group id where the
        caller already wrote one elsewhere.
        """
        changed: list[Group] = []
        for group_id, group in self._groups.items():
            if person_id in group.members:
                stamp = (stamps or {}).get(group_id) or next_timestamp(group.updated_at)
                updated = group.with_members_removed([person_id]).model_copy(
                    update={"updated_at": stamp}
                )
                self._groups[group_id] = updated
                changed.append(updated)
        return changed

    def _prepend_territory(self, territory: Territory) -> None:
        self._territories = {territory.id: territory, **self._territories}

    def _clear(self) -> None:
        self._people.clear()
        self._groups.clear()
        self._locations.clear()
        self._territories.clear()
