"""
1) Open (or create) the SQLite store and optionally seed it with the demo family.
2) Load the visible people and their saved card positions.
3) Lay the people out as one cluster per connected family.
4) Check the clusters for missing, duplicated or split families.
5) Write a static snapshot, or open the interactive view where cards can be
   dragged (edit mode) and the canvas panned and zoomed (view mode).
"""

import argparse
import logging
from pathlib import Path

from config import LayoutConfig, ViewConfig, default_db_path, default_tree_id
from database import SqliteTreeStore, create_database, store_people
from demo_data import DEMO_PEOPLE
from layout import arrange_clusters, create_clusters
from models import Person, Position, StoreError
from plotting import TreeView, plot_clusters
from renderer import InteractionController, Viewport
from validation import validate_clusters


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lay out and explore a family tree.")
    parser.add_argument("--db", type=Path, default=default_db_path(), help="SQLite database file")
    parser.add_argument("--tree", default=default_tree_id(), help="Tree id inside the database")
    parser.add_argument("--demo", action="store_true", help="Seed the tree with the demo family")
    parser.add_argument("--output", type=Path, help="Write a PNG/SVG/PDF snapshot instead of opening a window")
    parser.add_argument("--edit", action="store_true", help="Start in edit mode (drag cards)")
    parser.add_argument("--arrange", action="store_true", help="Spread separate families on a grid")
    parser.add_argument("--self-id", help="Highlight this person as the viewer")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_clusters(people: list[Person], overrides: dict[str, Position], arrange: bool, config: LayoutConfig):
    clusters = create_clusters(people, overrides, config)
    if arrange:
        clusters = arrange_clusters(clusters, overrides, config)
    return clusters


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    layout_config = LayoutConfig()
    view_config = ViewConfig()

    print(f"Opening database: {args.db}")
    try:
        conn = create_database(args.db)
    except StoreError as e:
        print(f"Error: {e}")
        return 1
    store = SqliteTreeStore(conn, args.tree)

    try:
        if args.demo:
            print(f"Seeding tree '{args.tree}' with {len(DEMO_PEOPLE)} demo people")
            store_people(conn, args.tree, DEMO_PEOPLE)

        print("Loading people and positions...")
        people = store.load_people()
        overrides = store.load_positions()
    except StoreError as e:
        print(f"Error: {e}")
        conn.close()
        return 1
    print(f"  Found {len(people)} people and {len(overrides)} saved positions")
    if not people:
        print(f"Tree '{args.tree}' is empty; run with --demo to add sample data")
        conn.close()
        return 1

    print("Laying out clusters...")
    clusters = build_clusters(people, overrides, args.arrange, layout_config)
    print(f"  {len(clusters)} clusters, {sum(len(c.nodes) for c in clusters)} cards")

    print("Validating clusters...")
    warnings = validate_clusters(people, clusters)
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:
            print(f"    - {w}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No validation issues found")

    if args.output:
        print(f"Writing snapshot to: {args.output}")
        plot_clusters(clusters, args.output, overrides, layout_config)
        conn.close()
        print("Done!")
        return 0

    import matplotlib.pyplot as plt

    viewport = Viewport(view_config.width, view_config.height, scale=view_config.default_scale)
    controller = InteractionController(
        viewport,
        overrides,
        edit_mode=args.edit,
        on_position_change=store.save_position,
        on_error=lambda message: print(f"Error: {message}"),
        config=view_config,
    )

    def hide(person_id: str):
        try:
            store.set_visibility(person_id, False)
            people = store.load_people()
        except StoreError as e:
            print(f"Error: could not hide {person_id}: {e}")
            return
        view.set_clusters(build_clusters(people, overrides, args.arrange, layout_config))

    view = TreeView(
        clusters,
        controller,
        layout_config=layout_config,
        view_config=view_config,
        self_id=args.self_id,
        on_hide=hide,
    )

    def activate(person_id: str):
        person = next((n.person for c in view.clusters for n in c.nodes if n.person.id == person_id), None)
        if person is not None:
            print(f"Selected {person.full_name} {person.dates_label}".rstrip())
        view.select(person_id)

    controller.on_node_activate = activate

    print("Opening viewer (e: edit mode, +/-: zoom, 0: reset, h: hide selected)")
    plt.show()
    conn.close()
    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
