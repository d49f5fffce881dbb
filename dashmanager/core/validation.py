"""Field-level validation run before any store operation."""

from __future__ import annotations

import re

from ..errors import ValidationError
from .models import Group, Location, Person, Territory

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def email_error(email: str) -> str | None:
    if not email.strip():
        return "Email is required."
    if not EMAIL_RE.search(email):
        return "Email is invalid."
    return None


def person_errors(person: Person) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not person.name.strip():
        errors["name"] = "Name is required."
    message = email_error(person.email)
    if message:
        errors["email"] = message
    return errors


def group_errors(group: Group) -> dict[str, str]:
    if not group.name.strip():
        return {"name": "Group name is required."}
    return {}


def location_errors(location: Location) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not location.name.strip():
        errors["name"] = "Location name is required."
    if not location.address.strip():
        errors["address"] = "Address is required."
    if location.coordinates is None:
        errors["coordinates"] = "Coordinates are required."
    return errors


def territory_errors(territory: Territory) -> dict[str, str]:
    if not territory.name.strip():
        return {"name": "Territory name is required."}
    return {}


def ensure_valid(errors: dict[str, str]) -> None:
    if errors:
        raise ValidationError(errors)
