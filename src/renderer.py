"""
Screen projection and pointer interaction for laid-out family clusters.

Nothing here depends on a GUI toolkit: `plotting.TreeView` feeds matplotlib events
into `InteractionController` and draws what `project_cards` / `project_links` return.
"""

import logging
import math
from collections.abc import Callable, Iterable, Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from config import LayoutConfig, ViewConfig
from models import Cluster, Gender, Position, StoreError, TreeNode

logger = logging.getLogger(__name__)

_DEFAULT_LAYOUT = LayoutConfig()
_DEFAULT_VIEW = ViewConfig()


@dataclass
class Viewport:
    """Maps virtual coordinates to screen pixels: screen = center + translate + virtual * scale."""

    width: float
    height: float
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def project(self, position: Position) -> tuple[float, float]:
        return (
            self.width / 2 + self.translate_x + position.x * self.scale,
            self.height / 2 + self.translate_y + position.y * self.scale,
        )

    def unproject(self, sx: float, sy: float) -> Position:
        return Position(
            (sx - self.width / 2 - self.translate_x) / self.scale,
            (sy - self.height / 2 - self.translate_y) / self.scale,
        )


@dataclass(frozen=True)
class Link:
    kind: Literal["child", "partner"]
    source_id: str
    target_id: str
    start: Position
    end: Position


@dataclass(frozen=True)
class CardView:
    node: TreeNode
    x: float  # screen center
    y: float
    width: float
    height: float
    gender: Gender
    label: str
    dates: str
    is_selected: bool = False
    is_self: bool = False

    def contains(self, sx: float, sy: float) -> bool:
        return abs(sx - self.x) <= self.width / 2 and abs(sy - self.y) <= self.height / 2


def effective_position(node: TreeNode, overrides: Mapping[str, Position]) -> Position:
    return overrides.get(node.person.id, node.position)


def compute_links(
    clusters: Iterable[Cluster],
    overrides: Mapping[str, Position],
    config: LayoutConfig | None = None,
) -> list[Link]:
    """
    Collect one link per parent -> child edge and one per partner pair.

    Parent/child edges are found from both ends (children_ids and parent_ids) and
    de-duplicated by the ordered (parent, child) pair. Partner edges are
    de-duplicated by the unordered pair. Edges to people outside the cluster are
    skipped.
    """
    config = config or _DEFAULT_LAYOUT
    half_w = config.card_width / 2
    half_h = config.card_height / 2

    links: list[Link] = []
    seen_child: set[tuple[str, str]] = set()
    seen_partner: set[tuple[str, str]] = set()

    for cluster in clusters:
        node_by_id = {n.person.id: n for n in cluster.nodes}

        def add_child_link(parent_id: str, child_id: str) -> None:
            if (parent_id, child_id) in seen_child:
                return
            parent = node_by_id.get(parent_id)
            child = node_by_id.get(child_id)
            if parent is None or child is None:
                return
            seen_child.add((parent_id, child_id))
            p = effective_position(parent, overrides)
            c = effective_position(child, overrides)
            links.append(Link("child", parent_id, child_id, p.offset(0, half_h), c.offset(0, -half_h)))

        for node in cluster.nodes:
            person = node.person
            for child_id in person.children_ids:
                add_child_link(person.id, child_id)
            for parent_id in person.parent_ids:
                add_child_link(parent_id, person.id)

            if not person.partner_id:
                continue
            a, b = sorted((person.id, person.partner_id))
            if (a, b) in seen_partner or person.partner_id not in node_by_id:
                continue
            seen_partner.add((a, b))
            first = effective_position(node_by_id[a], overrides)
            second = effective_position(node_by_id[b], overrides)
            links.append(Link("partner", a, b, first.offset(half_w, 0), second.offset(-half_w, 0)))

    return links


def project_cards(
    clusters: Iterable[Cluster],
    overrides: Mapping[str, Position],
    viewport: Viewport,
    config: LayoutConfig | None = None,
    selected_id: str | None = None,
    self_id: str | None = None,
) -> list[CardView]:
    """Screen rectangles for every node; nodes that project to NaN or infinity are left out."""
    config = config or _DEFAULT_LAYOUT
    cards = []
    for cluster in clusters:
        for node in cluster.nodes:
            sx, sy = viewport.project(effective_position(node, overrides))
            if not (math.isfinite(sx) and math.isfinite(sy)):
                logger.debug("Skipping %s: non-finite screen position", node.person.id)
                continue
            cards.append(
                CardView(
                    node=node,
                    x=sx,
                    y=sy,
                    width=config.card_width * viewport.scale,
                    height=config.card_height * viewport.scale,
                    gender=node.person.gender,
                    label=node.person.full_name,
                    dates=node.person.dates_label,
                    is_selected=node.person.id == selected_id,
                    is_self=node.person.id == self_id,
                )
            )
    return cards


def project_links(
    links: Iterable[Link], viewport: Viewport
) -> list[tuple[tuple[float, float], tuple[float, float]]]:
    """Screen segments for links, dropping any with a non-finite end."""
    segments = []
    for link in links:
        start = viewport.project(link.start)
        end = viewport.project(link.end)
        if all(math.isfinite(v) for v in (*start, *end)):
            segments.append((start, end))
    return segments


def hit_test(cards: list[CardView], sx: float, sy: float) -> CardView | None:
    """Return the topmost (last drawn) card under the screen point."""
    for card in reversed(cards):
        if card.contains(sx, sy):
            return card
    return None


class GestureState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    PANNING = "panning"


class InteractionController:
    """
    Drag, pan and zoom state machine.

    IDLE -> DRAGGING on pointer down over a node in edit mode. Moves write the
    dragged node's position into `overrides`; release reports it once through
    `on_position_change`.

    IDLE -> PANNING on pointer down in view mode. Moves shift the viewport; a
    release over a pressed node with no real movement counts as a click and is
    reported through `on_node_activate`.

    Only one gesture runs at a time: pointer down, zooming and resetting the view
    are ignored unless IDLE.

    Position sinks report failures by raising `StoreError`; anything else is a
    bug in the sink and propagates.
    """

    def __init__(
        self,
        viewport: Viewport,
        overrides: MutableMapping[str, Position],
        *,
        edit_mode: bool = False,
        on_position_change: Callable[[str, float, float], None] | None = None,
        on_node_activate: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        config: ViewConfig | None = None,
    ):
        self.viewport = viewport
        self.overrides = overrides
        self.config = config or _DEFAULT_VIEW
        self.on_position_change = on_position_change
        self.on_node_activate = on_node_activate
        self.on_error = on_error
        self._edit_mode = edit_mode
        self._state = GestureState.IDLE

        self._node_id: str | None = None
        self._origin: Position | None = None
        self._pointer_start: tuple[float, float] = (0.0, 0.0)
        self._pan_start: tuple[float, float] = (0.0, 0.0)
        self._moved = False
        self._max_travel = 0.0

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def edit_mode(self) -> bool:
        return self._edit_mode

    @property
    def dragging_id(self) -> str | None:
        return self._node_id if self._state is GestureState.DRAGGING else None

    def set_edit_mode(self, enabled: bool) -> bool:
        """Switch between edit (drag nodes) and view (pan) mode; refused mid-gesture."""
        if self._state is not GestureState.IDLE:
            logger.warning("Cannot change edit mode while %s", self._state.value)
            return False
        self._edit_mode = enabled
        return True

    def pointer_down(self, sx: float, sy: float, node: TreeNode | None = None) -> bool:
        if self._state is not GestureState.IDLE:
            return False

        self._pointer_start = (sx, sy)
        self._moved = False
        self._max_travel = 0.0

        if self._edit_mode:
            if node is None:
                return False
            self._node_id = node.person.id
            self._origin = effective_position(node, self.overrides)
            self._state = GestureState.DRAGGING
            return True

        self._node_id = node.person.id if node is not None else None
        self._pan_start = (sx - self.viewport.translate_x, sy - self.viewport.translate_y)
        self._state = GestureState.PANNING
        return True

    def pointer_move(self, sx: float, sy: float) -> bool:
        if self._state is GestureState.IDLE:
            return False

        dx = sx - self._pointer_start[0]
        dy = sy - self._pointer_start[1]
        self._max_travel = max(self._max_travel, math.hypot(dx, dy))

        if self._state is GestureState.DRAGGING:
            scale = self.viewport.scale
            self.overrides[self._node_id] = self._origin.offset(dx / scale, dy / scale)
            self._moved = True
        else:
            self.viewport.translate_x = sx - self._pan_start[0]
            self.viewport.translate_y = sy - self._pan_start[1]
        return True

    def pointer_up(self, sx: float, sy: float) -> bool:
        if self._state is GestureState.IDLE:
            return False

        node_id = self._node_id
        state = self._state
        moved = self._moved
        travel = max(self._max_travel, math.dist((sx, sy), self._pointer_start))
        self._reset_gesture()

        if state is GestureState.DRAGGING:
            if moved and node_id in self.overrides:
                self._persist(node_id, self.overrides[node_id])
        elif node_id is not None and travel <= self.config.click_threshold:
            if self.on_node_activate is not None:
                self.on_node_activate(node_id)
        return True

    def cancel(self) -> None:
        """Abort the current gesture. A dragged node keeps its last position but is not persisted."""
        self._reset_gesture()

    def wheel(self, delta_y: float) -> float:
        if not self._is_idle("zoom"):
            return self.viewport.scale
        factor = self.config.wheel_zoom_out if delta_y > 0 else self.config.wheel_zoom_in
        return self._set_scale(self.viewport.scale * factor)

    def zoom_in(self) -> float:
        if not self._is_idle("zoom"):
            return self.viewport.scale
        return self._set_scale(self.viewport.scale * self.config.button_zoom)

    def zoom_out(self) -> float:
        if not self._is_idle("zoom"):
            return self.viewport.scale
        return self._set_scale(self.viewport.scale / self.config.button_zoom)

    def reset_view(self) -> bool:
        if not self._is_idle("reset the view"):
            return False
        self.viewport.scale = self.config.default_scale
        self.viewport.translate_x = 0.0
        self.viewport.translate_y = 0.0
        return True

    def _is_idle(self, action: str) -> bool:
        if self._state is GestureState.IDLE:
            return True
        logger.debug("Cannot %s while %s", action, self._state.value)
        return False

    def _set_scale(self, scale: float) -> float:
        self.viewport.scale = self.config.clamp_scale(scale)
        return self.viewport.scale

    def _reset_gesture(self) -> None:
        self._state = GestureState.IDLE
        self._node_id = None
        self._origin = None

    def _persist(self, node_id: str, position: Position) -> None:
        if self.on_position_change is None:
            return
        try:
            self.on_position_change(node_id, position.x, position.y)
        except StoreError as e:
            # The local override stays in place; only the user is told.
            logger.warning("Could not save position of %s: %s", node_id, e)
            if self.on_error is not None:
                self.on_error(f"Position of {node_id} was not saved and may be lost on reload: {e}")
