"""Tree layout: per-family coordinates and cluster assembly."""

import logging
from collections.abc import Mapping, Sequence
from typing import Literal

from config import LayoutConfig
from graph import find_components, index_people, select_root, visible_people
from models import Cluster, Person, Position, TreeNode

logger = logging.getLogger(__name__)

Direction = Literal["up", "down"]

_DEFAULT_CONFIG = LayoutConfig()
_ORIGIN = Position(0.0, 0.0)


def categorize_children(
    children: Sequence[Person], parent_id: str, partner_id: str | None
) -> tuple[list[Person], list[Person], list[Person]]:
    """
    Split children into (shared, parent-only, partner-only) by their parent links.

    Input order is kept inside each group. Children listing neither parent are left out.
    """
    shared: list[Person] = []
    parent_only: list[Person] = []
    partner_only: list[Person] = []

    for child in children:
        has_parent = parent_id in child.parent_ids
        has_partner = partner_id is not None and partner_id in child.parent_ids
        if has_parent and has_partner:
            shared.append(child)
        elif has_parent:
            parent_only.append(child)
        elif has_partner:
            partner_only.append(child)

    return shared, parent_only, partner_only


def _back_references(members: Mapping[str, Person]) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Map each id to the members naming it as a parent, and to those naming it as a child."""
    named_as_parent: dict[str, list[str]] = {}
    named_as_child: dict[str, list[str]] = {}
    for member in members.values():
        for parent_id in member.parent_ids:
            named_as_parent.setdefault(parent_id, []).append(member.id)
        for child_id in member.children_ids:
            named_as_child.setdefault(child_id, []).append(member.id)
    return named_as_parent, named_as_child


def _children_of(
    person: Person, members: Mapping[str, Person], named_as_parent: Mapping[str, list[str]]
) -> list[Person]:
    ids = list(person.children_ids)
    partner = members.get(person.partner_id) if person.partner_id else None
    if partner is not None:
        ids.extend(partner.children_ids)
    # Children that only list the couple in their own parent_ids come last
    ids.extend(named_as_parent.get(person.id, ()))
    if partner is not None:
        ids.extend(named_as_parent.get(partner.id, ()))
    # De-duplicate while preserving order
    return [members[cid] for cid in dict.fromkeys(ids) if cid in members]


def _parents_of(person: Person, named_as_child: Mapping[str, list[str]]) -> list[str]:
    return list(dict.fromkeys([*person.parent_ids, *named_as_child.get(person.id, ())]))


def layout_component(
    root: Person,
    component: Sequence[Person],
    overrides: Mapping[str, Position] | None = None,
    config: LayoutConfig | None = None,
) -> list[TreeNode]:
    """
    Assign a position to every member of one family component.

    The root sits at the origin. Layout descends to partners and children and
    ascends to parents:

    - a partner not yet placed goes to (x + partner_spacing, y);
    - children (shared, then this person's only, then the partner's only) are
      spread on the next generation, centered under x;
    - parents go to (x, y - spacing_y) and keep ascending, without expanding
      their own partners or children.

    Links count from either side: a member listing this person in `parent_ids`
    is a child even when the person does not list it back, and likewise for
    parents named only through `children_ids`.

    A person is placed once; the first assignment wins. Overrides replace the
    position of the person they name, while relatives are still placed relative
    to the computed position. Members never reached are appended at their
    override or the origin.

    The traversal is a LIFO worklist that visits people in the same order as a
    depth-first recursion would.

    Args:
        root: The anchor person, laid out at the origin
        component: All members of the family, in a stable order
        overrides: Custom positions keyed by person id
        config: Card size and spacing

    Returns:
        One TreeNode per member, in placement order
    """
    overrides = overrides or {}
    config = config or _DEFAULT_CONFIG
    members = index_people(component)
    named_as_parent, named_as_child = _back_references(members)

    nodes: list[TreeNode] = []
    placed: set[str] = set()

    def place(person: Person, computed: Position) -> None:
        position = overrides.get(person.id, computed)
        nodes.append(TreeNode(person=person, position=position, cluster_id=root.id))
        placed.add(person.id)

    stack: list[tuple[str, float, float, Direction]] = [(root.id, 0.0, 0.0, "down")]
    while stack:
        person_id, x, y, direction = stack.pop()
        if person_id in placed:
            continue
        person = members[person_id]
        place(person, Position(x, y))

        pending: list[tuple[str, float, float, Direction]] = []

        if direction == "down":
            partner = members.get(person.partner_id) if person.partner_id else None
            if partner is not None and partner.id not in placed:
                place(partner, Position(x + config.partner_spacing, y))

            shared, parent_only, partner_only = categorize_children(
                _children_of(person, members, named_as_parent), person.id, person.partner_id
            )
            children = shared + parent_only + partner_only
            start_x = x - (len(children) - 1) * config.spacing_x / 2
            for i, child in enumerate(children):
                pending.append((child.id, start_x + i * config.spacing_x, y + config.spacing_y, "down"))

        # Both parents share one coordinate above the person.
        for parent_id in _parents_of(person, named_as_child):
            if parent_id in members and parent_id not in placed:
                pending.append((parent_id, x, y - config.spacing_y, "up"))

        stack.extend(reversed(pending))

    for person in members.values():
        if person.id not in placed:
            place(person, _ORIGIN)

    return nodes


def cluster_center(nodes: Sequence[TreeNode]) -> Position:
    if not nodes:
        return _ORIGIN
    sum_x = sum(n.position.x for n in nodes)
    sum_y = sum(n.position.y for n in nodes)
    return Position(sum_x / len(nodes), sum_y / len(nodes))


def create_clusters(
    people: Sequence[Person],
    overrides: Mapping[str, Position] | None = None,
    config: LayoutConfig | None = None,
) -> list[Cluster]:
    """
    Lay out every visible person, one cluster per connected family.

    Clusters come back in discovery order. A visible person missed by the
    per-family pass is given a singleton cluster of its own.
    """
    overrides = overrides or {}
    config = config or _DEFAULT_CONFIG
    visible = visible_people(people)

    clusters: list[Cluster] = []
    processed: set[str] = set()

    for component in find_components(visible):
        root = select_root(component)
        nodes = layout_component(root, component, overrides, config)
        processed.update(n.person.id for n in nodes)
        clusters.append(Cluster(id=root.id, nodes=tuple(nodes), center=cluster_center(nodes)))

    for person in index_people(visible).values():
        if person.id in processed:
            continue
        logger.warning("Person %s was not reached by the layout, adding it on its own", person.id)
        nodes = layout_component(person, [person], overrides, config)
        processed.add(person.id)
        clusters.append(Cluster(id=person.id, nodes=tuple(nodes), center=cluster_center(nodes)))

    total_nodes = sum(len(c.nodes) for c in clusters)
    expected = len(index_people(visible))
    if total_nodes != expected:
        logger.warning("Layout placed %d nodes for %d visible people", total_nodes, expected)

    logger.debug("Created %d clusters with %d nodes", len(clusters), total_nodes)
    return clusters


def arrange_clusters(
    clusters: Sequence[Cluster],
    overrides: Mapping[str, Position] | None = None,
    config: LayoutConfig | None = None,
) -> list[Cluster]:
    """
    Spread independent families apart so they do not overlap.

    A lone cluster is re-centered on the origin. Several clusters are shifted onto
    a grid `config.cluster_columns` wide with `config.cluster_spacing` between cells.
    Nodes holding an override stay where they are.
    """
    overrides = overrides or {}
    config = config or _DEFAULT_CONFIG
    spacing = config.cluster_spacing

    def shift(cluster: Cluster, dx: float, dy: float) -> Cluster:
        nodes = tuple(
            n if n.person.id in overrides else TreeNode(n.person, n.position.offset(dx, dy), n.cluster_id)
            for n in cluster.nodes
        )
        return Cluster(id=cluster.id, nodes=nodes, center=cluster_center(nodes))

    if len(clusters) == 1:
        cluster = clusters[0]
        if not cluster.nodes:
            return [cluster]
        xs = [n.position.x for n in cluster.nodes]
        ys = [n.position.y for n in cluster.nodes]
        return [shift(cluster, -(min(xs) + max(xs)) / 2, -(min(ys) + max(ys)) / 2)]

    arranged = []
    for i, cluster in enumerate(clusters):
        dx = (i % config.cluster_columns) * spacing - spacing
        dy = (i // config.cluster_columns) * spacing
        arranged.append(shift(cluster, dx, dy))
    return arranged
