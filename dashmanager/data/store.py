"""Remote-backed synchronizer for people, groups, locations and territories."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError as RowValidationError

from ..adapters.base import DataStore
from ..core.models import Group, Location, Person, Territory, now_iso
from ..core.validation import (
    ensure_valid,
    group_errors,
    location_errors,
    person_errors,
    territory_errors,
)
from ..errors import RemoteStoreError
from .mapping import (
    assignment_rows,
    group_from_row,
    group_to_row,
    image_rows,
    location_from_row,
    location_to_row,
    member_rows,
    person_from_row,
    person_to_row,
    territory_from_row,
    territory_to_row,
)
from .state import COLLECTIONS, EntityState, next_timestamp

log = logging.getLogger("dashmanager.store")

GROUP_COLUMNS = "*,group_members(person_id)"
LOCATION_COLUMNS = "*,location_assignments(group_id,person_id)"
TERRITORY_COLUMNS = "*,territory_images(*)"


@contextmanager
def _logged(action: str, entity_id: Any = None) -> Iterator[None]:
    """Log remote failures at the operation boundary and re-raise them."""
    try:
        yield
    except RemoteStoreError as exc:
        log.error("%s failed for %s: %s %s", action, entity_id or "new entity", exc, exc.detail)
        raise


def _first(rows: list[dict[str, Any]], table: str) -> dict[str, Any]:
    if not rows:
        raise RemoteStoreError(f"insert into {table} returned no rows")
    return rows[0]


class DashStore(EntityState):
    """Keeps the in-memory collections in step with the remote tables.

    Every mutation writes to the remote store first and only touches memory
    once all writes succeeded. Relation rows are replaced wholesale on
    update. Writes are not atomic: a failure between the entity row and its
    relation rows leaves the remote tables half-written, and concurrent
    mutations resolve as last response wins.
    """

    def __init__(self, adapter: DataStore) -> None:
        super().__init__()
        self.adapter = adapter

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load(self) -> bool:
        """Fetch every collection. On failure keep empty collections."""
        try:
            people = await self.adapter.select("people")
            groups = await self.adapter.select("groups", columns=GROUP_COLUMNS)
            locations = await self.adapter.select("locations", columns=LOCATION_COLUMNS)
            territories = await self.adapter.select(
                "territories", columns=TERRITORY_COLUMNS, order="created_at", descending=True
            )
            # map everything before touching memory so a bad row loads nothing
            loaded = (
                {p.id: p for p in map(person_from_row, people)},
                {g.id: g for g in map(group_from_row, groups)},
                {loc.id: loc for loc in map(location_from_row, locations)},
                {t.id: t for t in map(territory_from_row, territories)},
            )
        except (RemoteStoreError, RowValidationError) as exc:
            log.error("Loading data failed, continuing with empty collections: %s", exc)
            self._clear()
            self._notify(*COLLECTIONS)
            return False

        self._people, self._groups, self._locations, self._territories = loaded
        log.info(
            "Loaded %d people, %d groups, %d locations, %d territories",
            len(self._people),
            len(self._groups),
            len(self._locations),
            len(self._territories),
        )
        self._notify(*COLLECTIONS)
        return True

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------
    async def add_person(self, draft: Person) -> Person:
        ensure_valid(person_errors(draft))
        with _logged("add_person"):
            row = _first(await self.adapter.insert("people", [person_to_row(draft)]), "people")
        person = person_from_row(row)
        self._people[person.id] = person
        self._notify("people")
        return person.model_copy(deep=True)

    async def update_person(self, person: Person) -> Person:
        self._existing(self._people, person.id, "person")
        ensure_valid(person_errors(person))
        with _logged("update_person", person.id):
            await self.adapter.update("people", person_to_row(person), {"id": person.id})
        stored = person.model_copy(deep=True)
        if self._replace(self._people, stored):
            self._notify("people")
        return stored.model_copy(deep=True)

    async def remove_person(self, person_id: str) -> None:
        """Delete a person and drop them from every group."""
        self._existing(self._people, person_id, "person")
        stamps = {
            g.id: next_timestamp(g.updated_at)
            for g in self._groups.values()
            if person_id in g.members
        }
        with _logged("remove_person", person_id):
            await self.adapter.delete("group_members", {"person_id": person_id})
            await self.adapter.delete("people", {"id": person_id})
            for group_id, updated_at in stamps.items():
                await self.adapter.update("groups", {"updated_at": updated_at}, {"id": group_id})
        self._people.pop(person_id, None)
        changed = self._strip_person_from_groups(person_id, stamps)
        self._notify("people", *(["groups"] if changed else []))

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    async def add_group(self, draft: Group) -> Group:
        ensure_valid(group_errors(draft))
        updated_at = next_timestamp(0)
        with _logged("add_group"):
            row = _first(
                await self.adapter.insert("groups", [group_to_row(draft, updated_at)]),
                "groups",
            )
            group_id = str(row["id"])
            await self.adapter.insert("group_members", member_rows(group_id, draft.members))
        group = group_from_row(row).model_copy(
            update={"members": list(draft.members), "updated_at": updated_at}
        )
        self._groups[group.id] = group
        self._notify("groups")
        return group.model_copy(deep=True)

    async def update_group(self, group: Group) -> Group:
        previous = self._existing(self._groups, group.id, "group")
        ensure_valid(group_errors(group))
        updated_at = next_timestamp(previous.updated_at)
        with _logged("update_group", group.id):
            await self.adapter.update("groups", group_to_row(group, updated_at), {"id": group.id})
            await self.adapter.delete("group_members", {"group_id": group.id})
            await self.adapter.insert("group_members", member_rows(group.id, group.members))
        updated = group.model_copy(update={"updated_at": updated_at}, deep=True)
        if self._replace(self._groups, updated):
            self._notify("groups")
        return updated.model_copy(deep=True)

    async def remove_group(self, group_id: str) -> None:
        self._existing(self._groups, group_id, "group")
        with _logged("remove_group", group_id):
            await self.adapter.delete("group_members", {"group_id": group_id})
            await self.adapter.delete("groups", {"id": group_id})
        self._groups.pop(group_id, None)
        self._notify("groups")

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------
    async def add_location(self, draft: Location) -> Location:
        ensure_valid(location_errors(draft))
        updated_at = next_timestamp(0)
        with _logged("add_location"):
            row = _first(
                await self.adapter.insert("locations", [location_to_row(draft, updated_at)]),
                "locations",
            )
            location_id = str(row["id"])
            await self.adapter.insert(
                "location_assignments",
                assignment_rows(location_id, draft.assigned_groups, draft.assigned_people),
            )
        location = location_from_row(row).model_copy(
            update={
                "assigned_groups": list(draft.assigned_groups),
                "assigned_people": list(draft.assigned_people),
                "updated_at": updated_at,
            }
        )
        self._locations[location.id] = location
        self._notify("locations")
        return location.model_copy(deep=True)

    async def update_location(self, location: Location) -> Location:
        previous = self._existing(self._locations, location.id, "location")
        ensure_valid(location_errors(location))
        updated_at = next_timestamp(previous.updated_at)
        with _logged("update_location", location.id):
            await self.adapter.update(
                "locations", location_to_row(location, updated_at), {"id": location.id}
            )
            await self.adapter.delete("location_assignments", {"location_id": location.id})
            await self.adapter.insert(
                "location_assignments",
                assignment_rows(location.id, location.assigned_groups, location.assigned_people),
            )
        updated = location.model_copy(update={"updated_at": updated_at}, deep=True)
        if self._replace(self._locations, updated):
            self._notify("locations")
        return updated.model_copy(deep=True)

    async def remove_location(self, location_id: str) -> None:
        self._existing(self._locations, location_id, "location")
        with _logged("remove_location", location_id):
            await self.adapter.delete("location_assignments", {"location_id": location_id})
            await self.adapter.delete("locations", {"id": location_id})
        self._locations.pop(location_id, None)
        self._notify("locations")

    # ------------------------------------------------------------------
    # Territories
    # ------------------------------------------------------------------
    async def add_territory(self, draft: Territory) -> Territory:
        ensure_valid(territory_errors(draft))
        stamp = now_iso()
        values = territory_to_row(draft.model_copy(update={"created_at": stamp, "updated_at": stamp}))
        with _logged("add_territory"):
            row = _first(await self.adapter.insert("territories", [values]), "territories")
            territory_id = str(row["id"])
            await self.adapter.insert("territory_images", image_rows(territory_id, draft.images))
        territory = territory_from_row(row).model_copy(
            update={"images": [i.model_copy() for i in draft.images]}
        )
        self._prepend_territory(territory)
        self._notify("territories")
        return territory.model_copy(deep=True)

    async def update_territory(self, territory: Territory) -> Territory:
        """Save scalar fields and replace the territory's whole image set."""
        self._existing(self._territories, territory.id, "territory")
        ensure_valid(territory_errors(territory))
        updated = territory.model_copy(update={"updated_at": now_iso()}, deep=True)
        with _logged("update_territory", territory.id):
            await self.adapter.update(
                "territories", territory_to_row(updated), {"id": territory.id}
            )
            await self.adapter.delete("territory_images", {"territory_id": territory.id})
            await self.adapter.insert(
                "territory_images", image_rows(territory.id, updated.images)
            )
        if self._replace(self._territories, updated):
            self._notify("territories")
        return updated.model_copy(deep=True)

    async def remove_territory(self, territory_id: str) -> None:
        self._existing(self._territories, territory_id, "territory")
        with _logged("remove_territory", territory_id):
            await self.adapter.delete("territory_images", {"territory_id": territory_id})
            await self.adapter.delete("territories", {"id": territory_id})
        self._territories.pop(territory_id, None)
        self._notify("territories")
