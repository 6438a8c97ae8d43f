from types import SimpleNamespace

import matplotlib

matplotlib.use("Agg")

from matplotlib.backend_bases import MouseButton
from matplotlib.figure import Figure

from layout import create_clusters
from models import Person, Position
from plotting import GENDER_COLORS, TreeView, build_snapshot_graph
from renderer import InteractionController, Viewport


def _view(people: list[Person], *, edit_mode: bool, **kwargs):
    saved: list[tuple[str, float, float]] = []
    overrides: dict[str, Position] = {}
    controller = InteractionController(
        Viewport(800, 600),
        overrides,
        edit_mode=edit_mode,
        on_position_change=lambda pid, x, y: saved.append((pid, x, y)),
    )
    view = TreeView(
        create_clusters(people), controller, figure=Figure(figsize=(8, 6), dpi=100), **kwargs
    )
    return view, controller, overrides, saved


def _mouse(x: float, y: float, button=MouseButton.LEFT) -> SimpleNamespace:
    # Matplotlib display coordinates start at the bottom of an 800x600 figure.
    return SimpleNamespace(x=x, y=600 - y, button=button)


def test_view_draws_one_card_per_person(parent_with_two_children: list[Person]) -> None:
    view, *_ = _view(parent_with_two_children, edit_mode=False)
    assert sorted(c.node.person.id for c in view.cards) == ["A", "B", "C"]
    assert len(view.ax.patches) == 3


def test_mouse_drag_updates_and_saves_position(parent_with_two_children: list[Person]) -> None:
    view, controller, overrides, saved = _view(parent_with_two_children, edit_mode=True)

    # B is drawn at (310, 490) on screen.
    view._on_press(_mouse(310, 490))
    view._on_motion(_mouse(330, 500))
    assert overrides["B"] == Position(-70, 200)
    view._on_release(_mouse(330, 500))

    assert saved == [("B", -70, 200)]
    b = next(c for c in view.cards if c.node.person.id == "B")
    assert (b.x, b.y) == (330, 500)


def test_right_button_is_ignored(parent_with_two_children: list[Person]) -> None:
    view, controller, overrides, saved = _view(parent_with_two_children, edit_mode=True)
    view._on_press(_mouse(310, 490, button=MouseButton.RIGHT))
    assert controller.dragging_id is None


def test_scroll_and_keys(parent_with_two_children: list[Person]) -> None:
    hidden: list[str] = []
    view, controller, *_ = _view(parent_with_two_children, edit_mode=False, on_hide=hidden.append)

    view._on_scroll(SimpleNamespace(step=1))
    assert controller.viewport.scale == 1.1
    view._on_key(SimpleNamespace(key="0"))
    assert controller.viewport.scale == 1.0
    view._on_key(SimpleNamespace(key="e"))
    assert controller.edit_mode

    view._on_key(SimpleNamespace(key="h"))
    assert hidden == []
    view.select("C")
    view._on_key(SimpleNamespace(key="h"))
    assert hidden == ["C"]
    assert view.selected_id is None


def test_empty_view_shows_message() -> None:
    view, *_ = _view([], edit_mode=False)
    assert view.cards == []
    assert [t.get_text() for t in view.ax.texts] == ["No people to display"]


def test_snapshot_graph_pins_every_card(demo_people: list[Person]) -> None:
    P = build_snapshot_graph(create_clusters(demo_people))
    nodes = {n.get_name(): n for n in P.get_nodes()}
    assert len(nodes) == 7
    assert len(P.get_edges()) == 10
    assert nodes["gp1"].get("fillcolor") == GENDER_COLORS[demo_people[0].gender]
    assert nodes["p1"].get("pos").strip('"') == "0.00,-190.00!"


def test_snapshot_graph_skips_non_finite(couple: list[Person]) -> None:
    overrides = {"B": Position(float("nan"), 0)}
    P = build_snapshot_graph(create_clusters(couple, overrides), overrides)
    assert [n.get_name() for n in P.get_nodes()] == ["A"]
    assert P.get_edges() == []
