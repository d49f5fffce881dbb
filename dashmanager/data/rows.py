"""Typed shapes of the rows returned by the remote tables.

Embedded relations (``group_members``, ``location_assignments``,
``territory_images``) are optional because PostgREST only includes them
when they are requested in the ``select`` clause.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class PersonRow(_Row):
    id: str
    name: str
    email: str = ""
    phone: str | None = None
    bio: str | None = None
    avatar: str | None = None


class GroupMemberRow(_Row):
    group_id: str | None = None
    person_id: str


class GroupRow(_Row):
    id: str
    name: str
    description: str | None = None
    avatar: str | None = None
    updated_at: int | None = None
    group_members: list[GroupMemberRow] | None = None


class LocationAssignmentRow(_Row):
    location_id: str | None = None
    group_id: str | None = None
    person_id: str | None = None


class LocationRow(_Row):
    id: str
    name: str
    address: str | None = None
    visited: bool = False
    lat: float | None = None
    lng: float | None = None
    updated_at: int | None = None
    location_assignments: list[LocationAssignmentRow] | None = None


class TerritoryImageRow(_Row):
    id: str
    territory_id: str | None = None
    url: str
    description: str | None = None
    assigned_groups: list[str] | None = None
    assigned_people: list[str] | None = None
    created_at: str | None = None


class TerritoryRow(_Row):
    id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    territory_images: list[TerritoryImageRow] | None = None
