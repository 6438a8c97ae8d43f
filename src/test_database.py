import sqlite3

import pytest

from database import (
    SqliteTreeStore,
    StoreError,
    create_database,
    delete_position,
    load_people,
    load_positions,
    save_position,
    set_person_visibility,
    store_people,
)
from layout import create_clusters
from models import Gender, Person, Position


def _positions(clusters) -> dict[str, Position]:
    return {n.person.id: n.position for c in clusters for n in c.nodes}


@pytest.fixture()
def conn() -> sqlite3.Connection:
    conn = create_database(":memory:")
    yield conn
    conn.close()


def test_people_round_trip(conn: sqlite3.Connection, demo_people: list[Person]) -> None:
    store_people(conn, "t1", demo_people)
    assert load_people(conn, "t1") == demo_people


def test_children_derived_from_parent_links(conn: sqlite3.Connection) -> None:
    # Only the parent lists the child.
    store_people(
        conn,
        "t1",
        [
            Person(id="P", first_name="Pat", last_name="Ray", gender=Gender.FEMALE, children_ids=("C",)),
            Person(id="C", first_name="Cas", last_name="Ray"),
        ],
    )
    people = {p.id: p for p in load_people(conn, "t1")}
    assert people["P"].children_ids == ("C",)
    assert people["C"].parent_ids == ("P",)
    assert people["P"].gender is Gender.FEMALE


def test_children_keep_the_parents_order(conn: sqlite3.Connection) -> None:
    people = [
        Person(id="A", first_name="Ann", last_name="Lee", children_ids=("C2", "C1")),
        Person(id="C1", first_name="One", last_name="Lee", parent_ids=("A",)),
        Person(id="C2", first_name="Two", last_name="Lee", parent_ids=("A",)),
    ]
    store_people(conn, "t1", people)
    loaded = load_people(conn, "t1")

    assert loaded == people
    assert _positions(create_clusters(loaded)) == _positions(create_clusters(people))


def test_unlisted_children_follow_listed_ones(conn: sqlite3.Connection) -> None:
    store_people(
        conn,
        "t1",
        [
            Person(id="A", first_name="Ann", last_name="Lee", children_ids=("C2",)),
            Person(id="C1", first_name="One", last_name="Lee", parent_ids=("A",)),
            Person(id="C2", first_name="Two", last_name="Lee", parent_ids=("A",)),
        ],
    )
    people = {p.id: p for p in load_people(conn, "t1")}
    assert people["A"].children_ids == ("C2", "C1")


def test_trees_are_isolated(conn: sqlite3.Connection, demo_people: list[Person]) -> None:
    store_people(conn, "t1", demo_people)
    save_position(conn, "t1", "e1", 1.0, 2.0)
    assert load_people(conn, "t2") == []
    assert load_positions(conn, "t2") == {}


def test_positions_save_update_delete(conn: sqlite3.Connection) -> None:
    save_position(conn, "t1", "e1", 1.5, -2.0)
    assert load_positions(conn, "t1") == {"e1": Position(1.5, -2.0)}

    save_position(conn, "t1", "e1", 10, 20)
    assert load_positions(conn, "t1") == {"e1": Position(10.0, 20.0)}

    delete_position(conn, "t1", "e1")
    assert load_positions(conn, "t1") == {}


def test_visibility_flag(conn: sqlite3.Connection, demo_people: list[Person]) -> None:
    store_people(conn, "t1", demo_people)
    set_person_visibility(conn, "t1", "e2", False)
    hidden = [p.id for p in load_people(conn, "t1") if not p.is_visible]
    assert hidden == ["e2"]


def test_visibility_of_unknown_person_fails(conn: sqlite3.Connection) -> None:
    with pytest.raises(StoreError):
        set_person_visibility(conn, "t1", "nobody", False)


def test_save_on_closed_connection_raises_store_error() -> None:
    conn = create_database(":memory:")
    conn.close()
    with pytest.raises(StoreError):
        save_position(conn, "t1", "e1", 0, 0)


def test_unopenable_database_raises_store_error(tmp_path) -> None:
    with pytest.raises(StoreError):
        create_database(tmp_path / "missing" / "tree.db")


def test_store_on_closed_connection_raises_store_error(demo_people: list[Person]) -> None:
    conn = create_database(":memory:")
    conn.close()
    with pytest.raises(StoreError):
        store_people(conn, "t1", demo_people)


def test_store_port(conn: sqlite3.Connection, demo_people: list[Person]) -> None:
    store_people(conn, "t1", demo_people)
    store = SqliteTreeStore(conn, "t1")

    store.save_position("p2", 3.0, 4.0)
    assert store.load_positions() == {"p2": Position(3.0, 4.0)}
    store.set_visibility("p2", False)
    assert [p.id for p in store.load_people() if not p.is_visible] == ["p2"]
    store.delete_position("p2")
    assert store.load_positions() == {}
