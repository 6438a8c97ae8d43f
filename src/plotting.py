"""Visualization of laid-out family clusters: interactive matplotlib view and static snapshots."""

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pydot
from matplotlib.backend_bases import MouseButton
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure
from matplotlib.patches import FancyBboxPatch

from config import LayoutConfig, ViewConfig
from models import Cluster, Gender, Position
from renderer import (
    CardView,
    InteractionController,
    compute_links,
    effective_position,
    hit_test,
    project_cards,
    project_links,
)

logger = logging.getLogger(__name__)

GENDER_COLORS = {
    Gender.MALE: "lightblue",
    Gender.FEMALE: "lightpink",
    Gender.UNKNOWN: "lightgray",
}


class TreeView:
    """
    Interactive matplotlib view of family clusters.

    The axes are kept in screen pixels (origin top-left) so matplotlib event
    coordinates can be handed to the controller unchanged. Left-button press,
    motion and release drive dragging or panning, the scroll wheel zooms.

    Keys:
        e       toggle edit mode (drag cards) / view mode (pan, click to select)
        + / -   zoom in / out
        0       reset the view
        h       hide the selected person (needs `on_hide`)
        escape  cancel the current gesture
    """

    def __init__(
        self,
        clusters: Sequence[Cluster],
        controller: InteractionController,
        *,
        figure: Figure | None = None,
        layout_config: LayoutConfig | None = None,
        view_config: ViewConfig | None = None,
        self_id: str | None = None,
        on_hide: Callable[[str], None] | None = None,
    ):
        self.clusters = list(clusters)
        self.controller = controller
        self.layout_config = layout_config or LayoutConfig()
        self.view_config = view_config or controller.config
        self.self_id = self_id
        self.selected_id: str | None = None
        self.on_hide = on_hide
        self._cards: list[CardView] = []

        if figure is None:
            import matplotlib.pyplot as plt

            dpi = 100
            figure = plt.figure(
                figsize=(self.view_config.width / dpi, self.view_config.height / dpi), dpi=dpi
            )
        self.figure = figure
        self.ax = figure.add_axes((0, 0, 1, 1))
        self._sync_viewport_size()

        canvas = figure.canvas
        canvas.mpl_connect("button_press_event", self._on_press)
        canvas.mpl_connect("motion_notify_event", self._on_motion)
        canvas.mpl_connect("button_release_event", self._on_release)
        canvas.mpl_connect("scroll_event", self._on_scroll)
        canvas.mpl_connect("key_press_event", self._on_key)
        canvas.mpl_connect("resize_event", self._on_resize)

        self.redraw()

    @property
    def cards(self) -> list[CardView]:
        return self._cards

    def set_clusters(self, clusters: Sequence[Cluster]) -> None:
        self.clusters = list(clusters)
        self.redraw()

    def select(self, person_id: str | None) -> None:
        self.selected_id = person_id
        self.redraw()

    def redraw(self) -> None:
        ax = self.ax
        viewport = self.controller.viewport
        overrides = self.controller.overrides

        ax.clear()
        ax.set_xlim(0, viewport.width)
        ax.set_ylim(viewport.height, 0)
        ax.axis("off")

        self._cards = project_cards(
            self.clusters,
            overrides,
            viewport,
            self.layout_config,
            selected_id=self.selected_id,
            self_id=self.self_id,
        )

        if not self._cards:
            ax.text(
                viewport.width / 2, viewport.height / 2, "No people to display", ha="center", va="center"
            )
            self.figure.canvas.draw_idle()
            return

        segments = project_links(compute_links(self.clusters, overrides, self.layout_config), viewport)
        ax.add_collection(
            LineCollection(
                segments,
                colors=self.view_config.link_color,
                linewidths=self.view_config.link_width,
                alpha=self.view_config.link_alpha,
                zorder=1,
            )
        )

        dragging = self.controller.dragging_id
        for card in self._cards:
            self._draw_card(card, dragging == card.node.person.id)

        mode = "edit" if self.controller.edit_mode else "view"
        ax.text(8, 16, f"{mode} mode  |  zoom {viewport.scale:.2f}", fontsize=9, color="dimgray")
        self.figure.canvas.draw_idle()

    def _draw_card(self, card: CardView, is_dragging: bool) -> None:
        scale = self.controller.viewport.scale
        edgecolor = "darkgray"
        linewidth = 1.0
        if card.is_self:
            edgecolor, linewidth = self.view_config.self_color, 2.0
        if card.is_selected:
            edgecolor, linewidth = self.view_config.selected_color, 2.5

        self.ax.add_patch(
            FancyBboxPatch(
                (card.x - card.width / 2, card.y - card.height / 2),
                card.width,
                card.height,
                boxstyle=f"round,pad=0,rounding_size={8 * scale:.2f}",
                facecolor=GENDER_COLORS[card.gender],
                edgecolor=edgecolor,
                linewidth=linewidth,
                alpha=0.8 if is_dragging else 1.0,
                zorder=3 if is_dragging else 2,
            )
        )
        label = card.label if not card.dates else f"{card.label}\n{card.dates}"
        self.ax.text(
            card.x,
            card.y,
            label,
            ha="center",
            va="center",
            fontsize=max(10 * scale, 4),
            fontweight="bold" if card.is_self else "normal",
            zorder=4,
            clip_on=True,
        )

    def _screen_xy(self, event) -> tuple[float, float]:
        # Matplotlib reports display pixels from the bottom-left corner.
        return event.x, self.figure.bbox.height - event.y

    def _sync_viewport_size(self) -> None:
        viewport = self.controller.viewport
        viewport.width = self.figure.bbox.width
        viewport.height = self.figure.bbox.height

    def _on_press(self, event) -> None:
        if event.button != MouseButton.LEFT:
            return
        sx, sy = self._screen_xy(event)
        card = hit_test(self._cards, sx, sy)
        if self.controller.pointer_down(sx, sy, card.node if card else None):
            self.redraw()

    def _on_motion(self, event) -> None:
        if self.controller.pointer_move(*self._screen_xy(event)):
            self.redraw()

    def _on_release(self, event) -> None:
        if event.button != MouseButton.LEFT:
            return
        if self.controller.pointer_up(*self._screen_xy(event)):
            self.redraw()

    def _on_scroll(self, event) -> None:
        # Scrolling up (positive step) zooms in, like a negative wheel delta.
        self.controller.wheel(-event.step)
        self.redraw()

    def _on_key(self, event) -> None:
        if event.key == "e":
            self.controller.set_edit_mode(not self.controller.edit_mode)
        elif event.key in ("+", "="):
            self.controller.zoom_in()
        elif event.key == "-":
            self.controller.zoom_out()
        elif event.key == "0":
            self.controller.reset_view()
        elif event.key == "escape":
            self.controller.cancel()
        elif event.key == "h":
            if self.selected_id is None or self.on_hide is None:
                return
            hidden, self.selected_id = self.selected_id, None
            self.on_hide(hidden)
        else:
            return
        self.redraw()

    def _on_resize(self, event) -> None:
        self._sync_viewport_size()
        self.redraw()


def build_snapshot_graph(
    clusters: Sequence[Cluster],
    overrides: Mapping[str, Position] | None = None,
    config: LayoutConfig | None = None,
) -> pydot.Dot:
    """
    Build a pydot graph with every card pinned at its layout position.

    Virtual units are used as points; the y axis is flipped because Graphviz grows
    upwards. Render with `neato -n2` so the pinned positions are kept.
    """
    overrides = overrides or {}
    config = config or LayoutConfig()

    P = pydot.Dot(graph_type="graph")
    P.set("splines", "false")
    P.set("outputorder", "edgesfirst")

    for cluster in clusters:
        for node in cluster.nodes:
            position = effective_position(node, overrides)
            if not position.is_finite():
                continue
            person = node.person
            label = person.full_name if not person.dates_label else f"{person.full_name}\n{person.dates_label}"
            P.add_node(
                pydot.Node(
                    person.id,
                    label=label,
                    pos=f"{position.x:.2f},{0.0 - position.y:.2f}!",
                    shape="box",
                    style="rounded,filled",
                    fillcolor=GENDER_COLORS[person.gender],
                    width=f"{config.card_width / 72:.3f}",
                    height=f"{config.card_height / 72:.3f}",
                    fixedsize="true",
                    fontsize="10",
                )
            )

    for link in compute_links(clusters, overrides, config):
        if not (link.start.is_finite() and link.end.is_finite()):
            continue
        P.add_edge(
            pydot.Edge(
                link.source_id,
                link.target_id,
                color="darkgray",
                style="dashed" if link.kind == "partner" else "solid",
            )
        )

    return P


def plot_clusters(
    clusters: Sequence[Cluster],
    output_path: Path,
    overrides: Mapping[str, Position] | None = None,
    config: LayoutConfig | None = None,
):
    """Render a static snapshot of the clusters to PNG, SVG or PDF through Graphviz."""
    P = build_snapshot_graph(clusters, overrides, config)

    ext = output_path.suffix.lower().lstrip(".")
    if ext not in ("png", "svg", "pdf"):
        ext = "png"

    P.write(str(output_path), prog=["neato", "-n2"], format=ext)
    logger.info("Snapshot written to %s", output_path)
