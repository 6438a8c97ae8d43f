import pytest

from demo_data import DEMO_PEOPLE
from models import Gender, Person


@pytest.fixture()
def demo_people() -> list[Person]:
    return list(DEMO_PEOPLE)


@pytest.fixture()
def parent_with_two_children() -> list[Person]:
    # A has two children, B and C.
    return [
        Person(id="A", first_name="Ann", last_name="Lee", gender=Gender.FEMALE, children_ids=("B", "C")),
        Person(id="B", first_name="Bob", last_name="Lee", gender=Gender.MALE, parent_ids=("A",)),
        Person(id="C", first_name="Cid", last_name="Lee", parent_ids=("A",)),
    ]


@pytest.fixture()
def couple() -> list[Person]:
    return [
        Person(id="A", first_name="Ann", last_name="Lee", partner_id="B"),
        Person(id="B", first_name="Ben", last_name="Lee", partner_id="A"),
    ]
