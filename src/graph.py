"""Family graph traversal: person index, connected components and root selection."""

import logging
from collections import deque
from collections.abc import Iterable, Sequence

import networkx as nx

from models import Person

logger = logging.getLogger(__name__)


def visible_people(people: Iterable[Person]) -> list[Person]:
    """Drop soft-hidden people, keeping input order."""
    return [p for p in people if p.is_visible is not False]


def index_people(people: Iterable[Person]) -> dict[str, Person]:
    """
    Build an id -> Person lookup preserving input order.

    If the same id appears more than once the first occurrence wins.
    """
    index: dict[str, Person] = {}
    for person in people:
        if person.id in index:
            logger.warning("Duplicate person id %s ignored", person.id)
            continue
        index[person.id] = person
    return index


def find_components(people: Sequence[Person]) -> list[list[Person]]:
    """
    Partition people into families connected by parent, child or partner links.

    Each component is collected with a breadth-first search seeded from the first
    person (in input order) not yet assigned. At each dequeue the person's parents,
    children and partner are enqueued, then anyone who lists the person as one of
    those. A person is marked visited when dequeued,
    so duplicate queue entries are harmless. Ids that do not resolve to a person
    in `people` (hidden or deleted relatives) are ignored.

    Args:
        people: The visible people, in a stable order

    Returns:
        Components in discovery order, each listing people in dequeue order
    """
    index = index_people(people)

    # One-sided links (A lists B as a child, B does not list A) still join families.
    referrers: dict[str, list[str]] = {}
    for person in index.values():
        refs = [*person.parent_ids, *person.children_ids]
        if person.partner_id:
            refs.append(person.partner_id)
        for rid in refs:
            referrers.setdefault(rid, []).append(person.id)

    assigned: set[str] = set()
    components: list[list[Person]] = []

    for start in index.values():
        if start.id in assigned:
            continue

        component: list[Person] = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            if current.id in assigned:
                continue
            assigned.add(current.id)
            component.append(current)

            neighbor_ids = [*current.parent_ids, *current.children_ids]
            if current.partner_id:
                neighbor_ids.append(current.partner_id)
            neighbor_ids.extend(referrers.get(current.id, ()))
            for nid in neighbor_ids:
                neighbor = index.get(nid)
                if neighbor is not None and nid not in assigned:
                    queue.append(neighbor)

        components.append(component)

    return components


def select_root(component: Sequence[Person]) -> Person:
    """
    Pick the anchor person of a component.

    The first person without parent links is preferred. When every member lists a
    parent the first member of the component is used instead.
    """
    if not component:
        raise ValueError("Cannot select a root from an empty component")

    for person in component:
        if not person.parent_ids:
            return person
    return component[0]


def build_relation_graph(people: Iterable[Person]) -> nx.DiGraph:
    """
    Build a NetworkX directed graph of the family.

    PARENT_OF edges go parent -> child and SPOUSE_OF edges link partners. Edges are
    only added between people present in `people`, from either side of the
    relationship, so one-sided references still connect.
    """
    index = index_people(people)
    G = nx.DiGraph()

    for person in index.values():
        G.add_node(
            person.id,
            person_name=person.full_name,
            sex=person.gender.value,
            birth_year=person.birth_year,
            death_year=person.death_year,
        )

    for person in index.values():
        for parent_id in person.parent_ids:
            if parent_id in index:
                G.add_edge(parent_id, person.id, relationship_type="PARENT_OF")
        for child_id in person.children_ids:
            if child_id in index:
                G.add_edge(person.id, child_id, relationship_type="PARENT_OF")
        if person.partner_id and person.partner_id in index:
            G.add_edge(person.id, person.partner_id, relationship_type="SPOUSE_OF")

    return G
