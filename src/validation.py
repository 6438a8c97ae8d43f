"""Consistency checks between a person list and its computed clusters."""

from collections import Counter
from collections.abc import Sequence

import networkx as nx

from graph import build_relation_graph, visible_people
from models import Cluster, Person


def validate_clusters(people: Sequence[Person], clusters: Sequence[Cluster]) -> list[str]:
    """
    Validate computed clusters against the visible people for:
    - People missing from every cluster
    - People placed more than once, or placed while hidden/unknown
    - Families split across clusters, or unrelated people sharing one

    Family membership is recomputed independently with networkx connected
    components, ignoring links to people who are not visible.

    Returns a list of warning messages.
    """
    warnings: list[str] = []
    visible = visible_people(people)
    visible_ids = {p.id for p in visible}

    placed = Counter(n.person.id for c in clusters for n in c.nodes)

    for person in visible:
        if placed[person.id] == 0:
            warnings.append(f"Missing: {person.full_name} ({person.id}) is in no cluster")
    for person_id, count in placed.items():
        if count > 1:
            warnings.append(f"Duplicate: {person_id} appears {count} times")
        if person_id not in visible_ids:
            warnings.append(f"Unexpected: {person_id} is placed but not visible")

    cluster_of = {n.person.id: c.id for c in clusters for n in c.nodes}
    G = build_relation_graph(visible).to_undirected()
    for family in nx.connected_components(G):
        owners = {cluster_of[pid] for pid in family if pid in cluster_of}
        if len(owners) > 1:
            warnings.append(f"Split family: {sorted(family)} spread over clusters {sorted(owners)}")

    family_of = {}
    for i, family in enumerate(nx.connected_components(G)):
        for pid in family:
            family_of[pid] = i
    for cluster in clusters:
        families = {family_of[n.person.id] for n in cluster.nodes if n.person.id in family_of}
        if len(families) > 1:
            warnings.append(f"Mixed cluster: {cluster.id} holds {len(families)} unrelated families")

    return warnings
