"""JSON-backed local store used when no remote store is configured."""

from __future__ import annotations

import itertools
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..data.state import COLLECTIONS, EntityState, next_timestamp
from .images import SnapshotLimits, downscale_data_url, truncate
from .models import Group, Location, Person, Territory, TerritoryImage, new_id, now_iso
from .validation import ensure_valid, group_errors, location_errors, person_errors, territory_errors

log = logging.getLogger("dashmanager.storage")

_MODELS = {"people": Person, "groups": Group, "locations": Location, "territories": Territory}


class LocalStore(EntityState):
    """Serve the store operations from a single JSON snapshot file.

    The snapshot is rewritten on every mutation. Before writing, each
    collection is cut down to the ``max_entities`` most recently touched
    entries; entities are also sanitised on the way in (long text truncated,
    oversized inline images downscaled) so the file stays small. Failing to
    read or write the file never fails an operation: the session simply
    continues in memory.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        max_entities: int = 100,
        limits: SnapshotLimits | None = None,
    ) -> None:
        super().__init__()
        self.path = Path(path)
        self.max_entities = max_entities
        self.limits = limits or SnapshotLimits()
        self._recency: dict[str, dict[str, int]] = {name: {} for name in COLLECTIONS}
        self._clock = itertools.count(1)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    def _collection(self, name: str) -> dict[str, Any]:
        return getattr(self, f"_{name}")

    def _touch(self, name: str, entity_id: str) -> None:
        self._recency[name][entity_id] = next(self._clock)

    def _forget(self, name: str, entity_id: str) -> None:
        self._collection(name).pop(entity_id, None)
        self._recency[name].pop(entity_id, None)

    async def load(self) -> bool:
        """Read the snapshot; a missing file is an empty store."""
        ok = self._load()
        self._notify(*COLLECTIONS)
        return ok

    def _load(self) -> bool:
        self._clear()
        for recency in self._recency.values():
            recency.clear()
        if not self.path.exists():
            return True
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("snapshot root is not an object")
            loaded: dict[str, list[Any]] = {}
            for name, model in _MODELS.items():
                items = data.get(name) or []
                if not isinstance(items, list):
                    raise ValueError(f"{name} is not a list")
                loaded[name] = [model.model_validate(item) for item in items]
        except (OSError, ValueError) as exc:
            log.error("Could not read %s, starting with empty collections: %s", self.path, exc)
            return False

        for name, entities in loaded.items():
            collection = self._collection(name)
            for entity in entities:
                if entity.id is None:
                    entity = entity.model_copy(update={"id": new_id()})
                collection[entity.id] = entity
                self._touch(name, entity.id)
        self._trim()
        log.info("Loaded local snapshot from %s", self.path)
        return True

    def _trim(self) -> set[str]:
        """Drop the least recently touched entries beyond ``max_entities``.

        Returns the names of the collections that changed. People dropped
        here are also removed from the groups that listed them.
        """
        changed: set[str] = set()
        # people come first, so groups touched by the cleanup are trimmed after
        for name, recency in self._recency.items():
            excess = len(recency) - self.max_entities
            if excess <= 0:
                continue
            oldest = sorted(recency, key=recency.__getitem__)[:excess]
            for entity_id in oldest:
                self._forget(name, entity_id)
                if name == "people":
                    for group in self._strip_person_from_groups(entity_id):
                        self._touch("groups", group.id)
                        changed.add("groups")
            changed.add(name)
            log.info("Dropped %d oldest %s from the local snapshot", excess, name)
        return changed

    def _to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            name: [entity.model_dump() for entity in self._collection(name).values()]
            for name in COLLECTIONS
        }

    def save(self) -> bool:
        """Trim and persist the current state atomically."""
        self._trim()
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            log.error("Could not write %s, changes are kept in memory only: %s", self.path, exc)
            return False
        return True

    def _commit(self, name: str, entity_id: str, *extra: str) -> None:
        self._touch(name, entity_id)
        trimmed = self._trim() - {name, *extra}
        self.save()
        self._notify(name, *extra, *sorted(trimmed))

    # ------------------------------------------------------------------
    # Sanitising
    # ------------------------------------------------------------------
    def _clean_person(self, person: Person) -> Person:
        lim = self.limits
        return person.model_copy(
            update={
                "name": truncate(person.name, lim.name),
                "email": truncate(person.email, lim.email),
                "phone": truncate(person.phone, lim.phone),
                "bio": truncate(person.bio, lim.text),
                "avatar": downscale_data_url(person.avatar, lim),
            },
            deep=True,
        )

    def _clean_group(self, group: Group, updated_at: int) -> Group:
        lim = self.limits
        return group.model_copy(
            update={
                "name": truncate(group.name, lim.name),
                "description": truncate(group.description, lim.text),
                "avatar": downscale_data_url(group.avatar, lim),
                "updated_at": updated_at,
            },
            deep=True,
        )

    def _clean_location(self, location: Location, updated_at: int) -> Location:
        lim = self.limits
        return location.model_copy(
            update={
                "name": truncate(location.name, lim.name),
                "address": truncate(location.address, lim.address),
                "updated_at": updated_at,
            },
            deep=True,
        )

    def _clean_territory(self, territory: Territory, **update: Any) -> Territory:
        lim = self.limits
        images: list[TerritoryImage] = []
        for image in territory.images:
            url = downscale_data_url(image.url, lim)
            if url is None:
                continue
            images.append(
                image.model_copy(
                    update={"url": url, "description": truncate(image.description, lim.text)}
                )
            )
        return territory.model_copy(
            update={
                "name": truncate(territory.name, lim.name),
                "description": truncate(territory.description, lim.text),
                "image_url": downscale_data_url(territory.image_url, lim),
                "images": images,
                **update,
            },
            deep=True,
        )

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------
    async def add_person(self, draft: Person) -> Person:
        ensure_valid(person_errors(draft))
        person = self._clean_person(draft.model_copy(update={"id": new_id()}))
        self._people[person.id] = person
        self._commit("people", person.id)
        return person.model_copy(deep=True)

    async def update_person(self, person: Person) -> Person:
        self._existing(self._people, person.id, "person")
        ensure_valid(person_errors(person))
        stored = self._clean_person(person)
        self._people[stored.id] = stored
        self._commit("people", stored.id)
        return stored.model_copy(deep=True)

    async def remove_person(self, person_id: str) -> None:
        self._existing(self._people, person_id, "person")
        self._forget("people", person_id)
        changed = self._strip_person_from_groups(person_id)
        for group in changed:
            self._touch("groups", group.id)
        self.save()
        self._notify("people", *(["groups"] if changed else []))

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    async def add_group(self, draft: Group) -> Group:
        ensure_valid(group_errors(draft))
        group = self._clean_group(draft.model_copy(update={"id": new_id()}), next_timestamp(0))
        self._groups[group.id] = group
        self._commit("groups", group.id)
        return group.model_copy(deep=True)

    async def update_group(self, group: Group) -> Group:
        previous = self._existing(self._groups, group.id, "group")
        ensure_valid(group_errors(group))
        stored = self._clean_group(group, next_timestamp(previous.updated_at))
        self._groups[stored.id] = stored
        self._commit("groups", stored.id)
        return stored.model_copy(deep=True)

    async def remove_group(self, group_id: str) -> None:
        self._existing(self._groups, group_id, "group")
        self._forget("groups", group_id)
        self.save()
        self._notify("groups")

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------
    async def add_location(self, draft: Location) -> Location:
        ensure_valid(location_errors(draft))
        location = self._clean_location(
            draft.model_copy(update={"id": new_id()}), next_timestamp(0)
        )
        self._locations[location.id] = location
        self._commit("locations", location.id)
        return location.model_copy(deep=True)

    async def update_location(self, location: Location) -> Location:
        previous = self._existing(self._locations, location.id, "location")
        ensure_valid(location_errors(location))
        stored = self._clean_location(location, next_timestamp(previous.updated_at))
        self._locations[stored.id] = stored
        self._commit("locations", stored.id)
        return stored.model_copy(deep=True)

    async def remove_location(self, location_id: str) -> None:
        self._existing(self._locations, location_id, "location")
        self._forget("locations", location_id)
        self.save()
        self._notify("locations")

    # ------------------------------------------------------------------
    # Territories
    # ------------------------------------------------------------------
    async def add_territory(self, draft: Territory) -> Territory:
        ensure_valid(territory_errors(draft))
        stamp = now_iso()
        territory = self._clean_territory(draft, id=new_id(), created_at=stamp, updated_at=stamp)
        self._prepend_territory(territory)
        self._commit("territories", territory.id)
        return territory.model_copy(deep=True)

    async def update_territory(self, territory: Territory) -> Territory:
        self._existing(self._territories, territory.id, "territory")
        ensure_valid(territory_errors(territory))
        stored = self._clean_territory(territory, updated_at=now_iso())
        self._territories[stored.id] = stored
        self._commit("territories", stored.id)
        return stored.model_copy(deep=True)

    async def remove_territory(self, territory_id: str) -> None:
        self._existing(self._territories, territory_id, "territory")
        self._forget("territories", territory_id)
        self.save()
        self._notify("territories")
