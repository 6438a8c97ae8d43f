"""Layout and view settings."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class LayoutConfig:
    card_width: float = 150.0
    card_height: float = 130.0
    child_gap: float = 30.0  # horizontal gap between siblings
    generation_gap: float = 60.0  # vertical gap between generations
    partner_gap: float = 20.0
    cluster_spacing: float = 400.0
    cluster_columns: int = 3

    @property
    def spacing_x(self) -> float:
        return self.card_width + self.child_gap

    @property
    def spacing_y(self) -> float:
        return self.card_height + self.generation_gap

    @property
    def partner_spacing(self) -> float:
        return self.card_width + self.partner_gap


@dataclass(frozen=True)
class ViewConfig:
    width: float = 1200.0
    height: float = 800.0
    default_scale: float = 1.0
    min_scale: float = 0.3
    max_scale: float = 3.0
    wheel_zoom_in: float = 1.1
    wheel_zoom_out: float = 0.9
    button_zoom: float = 1.2
    click_threshold: float = 5.0  # pixels of pointer travel still treated as a click
    link_color: str = "#888888"
    link_alpha: float = 0.6
    link_width: float = 2.0
    selected_color: str = "#1e66f5"
    self_color: str = "#d20f39"

    def clamp_scale(self, scale: float) -> float:
        return max(self.min_scale, min(self.max_scale, scale))


def default_db_path() -> Path:
    """Database location, overridable with KINVIEW_DB."""
    return Path(os.environ.get("KINVIEW_DB", "family_tree.db"))


def default_tree_id() -> str:
    return os.environ.get("KINVIEW_TREE", "default")
