"""Pure conversions between remote rows and domain entities.

Nothing here performs I/O. The ``*_from_row`` functions accept raw
dictionaries as returned by the data store, validate them through the DTOs
in :mod:`dashmanager.data.rows` and flatten embedded join rows into id
lists. The ``*_to_row`` functions produce the column values written back.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..core.models import Coordinates, Group, Location, Person, Territory, TerritoryImage
from .rows import (
    GroupMemberRow,
    GroupRow,
    LocationAssignmentRow,
    LocationRow,
    PersonRow,
    TerritoryImageRow,
    TerritoryRow,
)


# ----------------------------------------------------------------------
# Join flattening
# ----------------------------------------------------------------------
def flatten_members(rows: Iterable[GroupMemberRow] | None) -> list[str]:
    """Person ids of a group's membership rows; ``[]`` when absent."""
    return list(dict.fromkeys(row.person_id for row in rows or ()))


def partition_assignments(
    rows: Iterable[LocationAssignmentRow] | None,
) -> tuple[list[str], list[str]]:
    """Split assignment rows into ``(group_ids, person_ids)``.

    Each row links either a group or a person; rows with neither are
    ignored.
    """
    groups: list[str] = []
    people: list[str] = []
    for row in rows or ():
        if row.group_id is not None and row.group_id not in groups:
            groups.append(row.group_id)
        elif row.person_id is not None and row.person_id not in people:
            people.append(row.person_id)
    return groups, people


# ----------------------------------------------------------------------
# People
# ----------------------------------------------------------------------
def person_from_row(raw: Mapping[str, Any]) -> Person:
    row = PersonRow.model_validate(raw)
    return Person(**row.model_dump())


def person_to_row(person: Person) -> dict[str, Any]:
    return person.model_dump(exclude={"id"})


# ----------------------------------------------------------------------
# Groups
# ----------------------------------------------------------------------
def group_from_row(raw: Mapping[str, Any]) -> Group:
    row = GroupRow.model_validate(raw)
    return Group(
        id=row.id,
        name=row.name,
        description=row.description,
        avatar=row.avatar,
        members=flatten_members(row.group_members),
        updated_at=row.updated_at or 0,
    )


def group_to_row(group: Group, updated_at: int) -> dict[str, Any]:
    return {
        "name": group.name,
        "description": group.description,
        "avatar": group.avatar,
        "updated_at": updated_at,
    }


def member_rows(group_id: str, members: Iterable[str]) -> list[dict[str, Any]]:
    return [{"group_id": group_id, "person_id": pid} for pid in members]


# ----------------------------------------------------------------------
# Locations
# ----------------------------------------------------------------------
def location_from_row(raw: Mapping[str, Any]) -> Location:
    row = LocationRow.model_validate(raw)
    groups, people = partition_assignments(row.location_assignments)
    coordinates = None
    if row.lat is not None and row.lng is not None:
        coordinates = Coordinates(lat=row.lat, lng=row.lng)
    return Location(
        id=row.id,
        name=row.name,
        address=row.address or "",
        visited=row.visited,
        coordinates=coordinates,
        assigned_groups=groups,
        assigned_people=people,
        updated_at=row.updated_at or 0,
    )


def location_to_row(location: Location, updated_at: int) -> dict[str, Any]:
    coords = location.coordinates
    return {
        "name": location.name,
        "address": location.address,
        "visited": location.visited,
        "lat": coords.lat if coords else None,
        "lng": coords.lng if coords else None,
        "updated_at": updated_at,
    }


def assignment_rows(
    location_id: str, group_ids: Iterable[str], person_ids: Iterable[str]
) -> list[dict[str, Any]]:
    rows = [
        {"location_id": location_id, "group_id": gid, "person_id": None}
        for gid in group_ids
    ]
    rows.extend(
        {"location_id": location_id, "group_id": None, "person_id": pid}
        for pid in person_ids
    )
    return rows


# ----------------------------------------------------------------------
# Territories
# ----------------------------------------------------------------------
def _image_from_row(row: TerritoryImageRow) -> TerritoryImage:
    values: dict[str, Any] = {
        "id": row.id,
        "url": row.url,
        "description": row.description,
        "assigned_groups": row.assigned_groups or [],
        "assigned_people": row.assigned_people or [],
    }
    if row.created_at:
        values["created_at"] = row.created_at
    return TerritoryImage(**values)


def territory_from_row(raw: Mapping[str, Any]) -> Territory:
    row = TerritoryRow.model_validate(raw)
    # embedded rows carry no guaranteed order
    images = sorted(row.territory_images or (), key=lambda r: r.created_at or "")
    return Territory(
        id=row.id,
        name=row.name,
        description=row.description,
        image_url=row.image_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
        images=[_image_from_row(r) for r in images],
    )


def territory_to_row(territory: Territory) -> dict[str, Any]:
    return {
        "name": territory.name,
        "description": territory.description,
        "image_url": territory.image_url,
        "created_at": territory.created_at,
        "updated_at": territory.updated_at,
    }


def image_rows(territory_id: str, images: Iterable[TerritoryImage]) -> list[dict[str, Any]]:
    return [
        {"territory_id": territory_id, **image.model_dump()}
        for image in images
    ]
