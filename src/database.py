"""SQLite storage for people and custom card positions, one record set per tree."""

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from models import Gender, Person, Position, StoreError

logger = logging.getLogger(__name__)


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Create SQLite database with person, parent link and position tables."""
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS person (
                tree_id TEXT NOT NULL,
                id TEXT NOT NULL,
                ordinal INTEGER NOT NULL,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                birth_year INTEGER,
                death_year INTEGER,
                gender TEXT NOT NULL DEFAULT 'unknown',
                partner_id TEXT,
                is_visible INTEGER NOT NULL DEFAULT 1,
                PRIMARY KEY (tree_id, id)
            )
        """)

        # ordinal orders the child's parents, child_ordinal the parent's children
        # (NULL when only the child records the link).
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS person_parent (
                tree_id TEXT NOT NULL,
                child_id TEXT NOT NULL,
                parent_id TEXT NOT NULL,
                ordinal INTEGER NOT NULL,
                child_ordinal INTEGER,
                PRIMARY KEY (tree_id, child_id, parent_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS person_position (
                tree_id TEXT NOT NULL,
                person_id TEXT NOT NULL,
                x REAL NOT NULL,
                y REAL NOT NULL,
                PRIMARY KEY (tree_id, person_id)
            )
        """)

        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not open database {db_path}: {e}") from e
    return conn


def store_people(conn: sqlite3.Connection, tree_id: str, people: Iterable[Person]):
    """
    Insert or replace people and their parent links.

    Child links are not stored separately: they are derived from parent links on
    load, so a child listed only in `children_ids` is recorded as a parent link too.
    Both sides keep their order: a child's `parent_ids` and a parent's
    `children_ids` come back as they were stored.
    """
    people = list(people)

    # (child, parent) -> [position in child's parent_ids, position in parent's children_ids]
    links: dict[tuple[str, str], list[int | None]] = {}
    for p in people:
        for i, parent_id in enumerate(p.parent_ids):
            links.setdefault((p.id, parent_id), [i, None])
    for p in people:
        for i, child_id in enumerate(p.children_ids):
            link = links.setdefault((child_id, p.id), [len(links), None])
            if link[1] is None:
                link[1] = i

    try:
        cursor = conn.cursor()
        cursor.executemany(
            """
            INSERT OR REPLACE INTO person
            (tree_id, id, ordinal, first_name, last_name, birth_year, death_year, gender, partner_id, is_visible)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    tree_id,
                    p.id,
                    i,
                    p.first_name,
                    p.last_name,
                    p.birth_year,
                    p.death_year,
                    p.gender.value,
                    p.partner_id,
                    int(p.is_visible),
                )
                for i, p in enumerate(people)
            ],
        )
        cursor.executemany(
            """
            INSERT OR REPLACE INTO person_parent (tree_id, child_id, parent_id, ordinal, child_ordinal)
            VALUES (?, ?, ?, ?, ?)
            """,
            [(tree_id, child, parent, i, j) for (child, parent), (i, j) in links.items()],
        )
        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not store people of tree {tree_id}: {e}") from e


def load_people(conn: sqlite3.Connection, tree_id: str) -> list[Person]:
    """Load all people of a tree (hidden ones included) in insertion order."""
    try:
        rows = conn.execute(
            """
            SELECT id, first_name, last_name, birth_year, death_year, gender, partner_id, is_visible
            FROM person WHERE tree_id = ? ORDER BY ordinal
            """,
            (tree_id,),
        ).fetchall()
        parent_links = conn.execute(
            """
            SELECT p.child_id, p.parent_id
            FROM person_parent p
            LEFT JOIN person c ON c.tree_id = p.tree_id AND c.id = p.child_id
            WHERE p.tree_id = ?
            ORDER BY c.ordinal, p.ordinal
            """,
            (tree_id,),
        ).fetchall()
        # Links the parent never listed go after its own children, in child order.
        child_links = conn.execute(
            """
            SELECT p.parent_id, p.child_id
            FROM person_parent p
            LEFT JOIN person c ON c.tree_id = p.tree_id AND c.id = p.child_id
            WHERE p.tree_id = ?
            ORDER BY p.child_ordinal IS NULL, p.child_ordinal, c.ordinal
            """,
            (tree_id,),
        ).fetchall()
    except sqlite3.Error as e:
        raise StoreError(f"Could not load people of tree {tree_id}: {e}") from e

    parents: dict[str, list[str]] = {}
    children: dict[str, list[str]] = {}
    for child_id, parent_id in parent_links:
        parents.setdefault(child_id, []).append(parent_id)
    for parent_id, child_id in child_links:
        children.setdefault(parent_id, []).append(child_id)

    return [
        Person(
            id=row[0],
            first_name=row[1],
            last_name=row[2],
            birth_year=row[3],
            death_year=row[4],
            gender=Gender.parse(row[5]),
            parent_ids=tuple(parents.get(row[0], ())),
            children_ids=tuple(children.get(row[0], ())),
            partner_id=row[6],
            is_visible=bool(row[7]),
        )
        for row in rows
    ]


def load_positions(conn: sqlite3.Connection, tree_id: str) -> dict[str, Position]:
    try:
        rows = conn.execute(
            "SELECT person_id, x, y FROM person_position WHERE tree_id = ?", (tree_id,)
        ).fetchall()
    except sqlite3.Error as e:
        raise StoreError(f"Could not load positions of tree {tree_id}: {e}") from e
    return {person_id: Position(float(x), float(y)) for person_id, x, y in rows}


def save_position(conn: sqlite3.Connection, tree_id: str, person_id: str, x: float, y: float):
    try:
        conn.execute(
            """
            INSERT INTO person_position (tree_id, person_id, x, y) VALUES (?, ?, ?, ?)
            ON CONFLICT (tree_id, person_id) DO UPDATE SET x = excluded.x, y = excluded.y
            """,
            (tree_id, person_id, x, y),
        )
        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not save position of {person_id}: {e}") from e


def delete_position(conn: sqlite3.Connection, tree_id: str, person_id: str):
    """Drop a custom position so the person falls back to the automatic layout."""
    try:
        conn.execute(
            "DELETE FROM person_position WHERE tree_id = ? AND person_id = ?", (tree_id, person_id)
        )
        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not delete position of {person_id}: {e}") from e


def set_person_visibility(conn: sqlite3.Connection, tree_id: str, person_id: str, visible: bool):
    try:
        cursor = conn.execute(
            "UPDATE person SET is_visible = ? WHERE tree_id = ? AND id = ?",
            (int(visible), tree_id, person_id),
        )
        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not change visibility of {person_id}: {e}") from e
    if cursor.rowcount == 0:
        raise StoreError(f"No person {person_id} in tree {tree_id}")


class SqliteTreeStore:
    """Data source and position sink for one tree, backed by an open connection."""

    def __init__(self, conn: sqlite3.Connection, tree_id: str):
        self.conn = conn
        self.tree_id = tree_id

    def load_people(self) -> list[Person]:
        return load_people(self.conn, self.tree_id)

    def load_positions(self) -> dict[str, Position]:
        return load_positions(self.conn, self.tree_id)

    def save_position(self, person_id: str, x: float, y: float):
        save_position(self.conn, self.tree_id, person_id, x, y)
        logger.debug("Saved position of %s at (%.1f, %.1f)", person_id, x, y)

    def delete_position(self, person_id: str):
        delete_position(self.conn, self.tree_id, person_id)

    def set_visibility(self, person_id: str, visible: bool):
        set_person_visibility(self.conn, self.tree_id, person_id, visible)
