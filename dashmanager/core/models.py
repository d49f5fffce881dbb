"""Domain entities managed by the dashboard.

The models are implemented using :mod:`pydantic` so that they provide
runtime validation and convenient serialisation to and from dictionaries.
Helpers that change relations (members, assignments, territory images)
return modified copies; the stores own the live instances.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Iterable
from datetime import UTC

from pydantic import BaseModel, Field, field_validator


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.datetime.now(tz=UTC).timestamp() * 1000)


def now_iso() -> str:
    return datetime.datetime.now(tz=UTC).isoformat()


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(str(i) for i in ids))


def _toggle(ids: list[str], value: str) -> list[str]:
    if value in ids:
        return [i for i in ids if i != value]
    return [*ids, value]


class Person(BaseModel):
    """An individual who can be grouped and assigned to locations.

    Attributes
    ----------
    id:
        Identifier assigned by the backing store. ``None`` for drafts that
        have not been saved yet.
    avatar:
        Either a URL or a ``data:`` URL holding an encoded image.

    """

    id: str | None = None
    name: str
    email: str
    phone: str | None = None
    bio: str | None = None
    avatar: str | None = None


class Group(BaseModel):
    """A named set of people."""

    id: str | None = None
    name: str
    description: str | None = None
    members: list[str] = Field(default_factory=list)
    avatar: str | None = None
    updated_at: int = 0

    @field_validator("members")
    @classmethod
    def _dedupe_members(cls, value: list[str]) -> list[str]:
        return _unique(value)

    def with_members_added(self, person_ids: Iterable[str]) -> Group:
        return self.model_copy(update={"members": _unique([*self.members, *person_ids])})

    def with_members_removed(self, person_ids: Iterable[str]) -> Group:
        drop = set(person_ids)
        return self.model_copy(update={"members": [m for m in self.members if m not in drop]})


class Coordinates(BaseModel):
    lat: float
    lng: float


class Location(BaseModel):
    """A physical place that groups and people visit."""

    id: str | None = None
    name: str
    address: str = ""
    visited: bool = False
    coordinates: Coordinates | None = None
    assigned_groups: list[str] = Field(default_factory=list)
    assigned_people: list[str] = Field(default_factory=list)
    updated_at: int = 0

    @field_validator("assigned_groups", "assigned_people")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return _unique(value)

    def toggle_group(self, group_id: str) -> Location:
        return self.model_copy(update={"assigned_groups": _toggle(self.assigned_groups, group_id)})

    def toggle_person(self, person_id: str) -> Location:
        return self.model_copy(update={"assigned_people": _toggle(self.assigned_people, person_id)})


class TerritoryImage(BaseModel):
    id: str = Field(default_factory=new_id)
    url: str
    description: str | None = None
    assigned_groups: list[str] = Field(default_factory=list)
    assigned_people: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=now_iso)

    def toggle_group(self, group_id: str) -> TerritoryImage:
        return self.model_copy(update={"assigned_groups": _toggle(self.assigned_groups, group_id)})

    def toggle_person(self, person_id: str) -> TerritoryImage:
        return self.model_copy(update={"assigned_people": _toggle(self.assigned_people, person_id)})


class Territory(BaseModel):
    """A named collection of images, optionally with a cover image."""

    id: str | None = None
    name: str
    description: str | None = None
    image_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    images: list[TerritoryImage] = Field(default_factory=list)

    def add_image(self, url: str, description: str | None = None) -> Territory:
        image = TerritoryImage(url=url, description=description)
        return self.model_copy(update={"images": [*self.images, image]})

    def remove_image(self, image_id: str) -> Territory:
        return self.model_copy(update={"images": [i for i in self.images if i.id != image_id]})

    def toggle_image_group(self, image_id: str, group_id: str) -> Territory:
        return self._map_image(image_id, lambda img: img.toggle_group(group_id))

    def toggle_image_person(self, image_id: str, person_id: str) -> Territory:
        return self._map_image(image_id, lambda img: img.toggle_person(person_id))

    def _map_image(self, image_id: str, change) -> Territory:
        images = [change(img) if img.id == image_id else img for img in self.images]
        return self.model_copy(update={"images": images})


class DashboardStats(BaseModel):
    people: int = 0
    groups: int = 0
    locations: int = 0
    visited_locations: int = 0
    territories: int = 0

    @property
    def visited_percent(self) -> int:
        return round(self.visited_locations / max(self.locations, 1) * 100)
