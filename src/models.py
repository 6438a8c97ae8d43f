"""Data classes for family tree entities and their computed layout."""

import math
from dataclasses import dataclass
from enum import Enum


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "Gender":
        """Map loose input ("M", "female", None, ...) onto a Gender."""
        if not value:
            return cls.UNKNOWN
        v = value.strip().lower()
        if v in ("m", "male"):
            return cls.MALE
        if v in ("f", "female"):
            return cls.FEMALE
        return cls.UNKNOWN


@dataclass(frozen=True)
class Person:
    id: str
    first_name: str
    last_name: str
    birth_year: int | None = None
    death_year: int | None = None
    gender: Gender = Gender.UNKNOWN
    parent_ids: tuple[str, ...] = ()
    children_ids: tuple[str, ...] = ()
    partner_id: str | None = None
    is_visible: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or "Unnamed"

    @property
    def dates_label(self) -> str:
        if self.birth_year is None:
            return ""
        if self.death_year is None:
            return str(self.birth_year)
        return f"{self.birth_year}-{self.death_year}"


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class TreeNode:
    person: Person
    position: Position
    cluster_id: str  # id of the root person of the owning cluster


@dataclass(frozen=True)
class Cluster:
    id: str
    nodes: tuple[TreeNode, ...]
    center: Position


class StoreError(Exception):
    """A read or write against the backing store failed."""
