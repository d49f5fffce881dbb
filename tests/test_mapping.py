"""Tests for row reshaping and join flattening."""

from dashmanager.core.models import Coordinates, Location, Person, TerritoryImage
from dashmanager.data.mapping import (
    assignment_rows,
    group_from_row,
    image_rows,
    location_from_row,
    location_to_row,
    person_from_row,
    person_to_row,
    territory_from_row,
)


def test_empty_membership_flattens_to_empty_list():
    group = group_from_row({"id": "g1", "name": "Team", "group_members": []})
    assert group.members == []


def test_missing_membership_flattens_to_empty_list():
    group = group_from_row({"id": "g1", "name": "Team"})
    assert group.members == []
    assert group.updated_at == 0


def test_membership_rows_become_ids():
    group = group_from_row(
        {
            "id": "g1",
            "name": "Team",
            "updated_at": 1700000000000,
            "group_members": [{"person_id": "p1"}, {"person_id": "p2"}],
        }
    )
    assert group.members == ["p1", "p2"]
    assert group.updated_at == 1700000000000


def test_assignments_are_partitioned_by_key():
    location = location_from_row(
        {
            "id": "l1",
            "name": "Hall",
            "address": "Main St",
            "lat": -23.5,
            "lng": -46.6,
            "location_assignments": [
                {"group_id": "g1", "person_id": None},
                {"group_id": None, "person_id": "p1"},
            ],
        }
    )
    assert location.assigned_groups == ["g1"]
    assert location.assigned_people == ["p1"]
    assert location.coordinates == Coordinates(lat=-23.5, lng=-46.6)


def test_location_without_relations_or_coordinates():
    location = location_from_row({"id": "l1", "name": "Hall", "address": None})
    assert location.assigned_groups == []
    assert location.assigned_people == []
    assert location.coordinates is None
    assert location.address == ""


def test_numeric_ids_are_strings():
    person = person_from_row({"id": 7, "name": "Ana", "email": "ana@example.com"})
    assert person.id == "7"


def test_person_row_omits_id():
    row = person_to_row(Person(id="p1", name="Ana", email="ana@example.com"))
    assert "id" not in row
    assert row["name"] == "Ana"


def test_location_row_and_assignment_rows():
    location = Location(
        name="Hall",
        address="Main St",
        coordinates=Coordinates(lat=1.5, lng=2.5),
        assigned_groups=["g1"],
        assigned_people=["p1", "p2"],
    )
    assert location_to_row(location, 42)["lat"] == 1.5
    rows = assignment_rows("l1", location.assigned_groups, location.assigned_people)
    assert rows == [
        {"location_id": "l1", "group_id": "g1", "person_id": None},
        {"location_id": "l1", "group_id": None, "person_id": "p1"},
        {"location_id": "l1", "group_id": None, "person_id": "p2"},
    ]


def test_territory_images_sorted_by_creation():
    territory = territory_from_row(
        {
            "id": "t1",
            "name": "North",
            "territory_images": [
                {"id": "i2", "url": "b.png", "created_at": "2024-02-01T00:00:00+00:00"},
                {
                    "id": "i1",
                    "url": "a.png",
                    "created_at": "2024-01-01T00:00:00+00:00",
                    "assigned_groups": ["g1"],
                    "assigned_people": None,
                },
            ],
        }
    )
    assert [i.id for i in territory.images] == ["i1", "i2"]
    assert territory.images[0].assigned_groups == ["g1"]
    assert territory.images[0].assigned_people == []


def test_image_rows_carry_parent_id():
    image = TerritoryImage(id="i1", url="a.png", assigned_people=["p1"])
    (row,) = image_rows("t1", [image])
    assert row["territory_id"] == "t1"
    assert row["id"] == "i1"
    assert row["assigned_people"] == ["p1"]
