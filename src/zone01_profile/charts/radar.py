from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from zone01_profile.core import RadarPoint, RankedSkill


MAX_RADAR_SKILLS = 12
REFERENCE_MAX = 100
GRID_LEVELS: Tuple[float, ...] = (0.2, 0.4, 0.6, 0.8, 1.0)
LABEL_OFFSET = 30


def _fmt(v: float) -> str:
    return f"{v:.2f}"


@dataclass(frozen=True)
class Spoke:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class RadarLayout:
    """
    Radar geometry.

    Invariants
    ----------
    * ``points`` are in rank order; vertex 0 sits at the top (angle -pi/2).
    * ``max_value >= 100`` so the outer ring is never below the 100% reference.
    * Empty ``points`` means the caller renders a placeholder.
    """

    size: int
    center: float
    max_radius: float
    max_value: float
    points: Tuple[RadarPoint, ...] = ()
    rings: Tuple[float, ...] = ()
    spokes: Tuple[Spoke, ...] = ()
    path: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def highest(self) -> int:
        return max((p.level for p in self.points), default=0)

    @property
    def average(self) -> int:
        if not self.points:
            return 0
        return int(np.floor(sum(p.level for p in self.points) / len(self.points) + 0.5))

    def as_json(self) -> dict:
        return {
            "size": self.size,
            "center": self.center,
            "max_radius": self.max_radius,
            "max_value": self.max_value,
            "rings": list(self.rings),
            "spokes": [[s.x1, s.y1, s.x2, s.y2] for s in self.spokes],
            "path": self.path,
            "points": [
                {
                    "name": p.name,
                    "level": p.level,
                    "angle": p.angle,
                    "radius": p.radius,
                    "x": p.x,
                    "y": p.y,
                    "label": [p.label_x, p.label_y],
                }
                for p in self.points
            ],
            "summary": {"tracked": len(self.points), "highest": self.highest, "average": self.average},
        }


def layout_radar(
    skills: Sequence[RankedSkill],
    *,
    size: int = 400,
    margin: int = 60,
    max_skills: int = MAX_RADAR_SKILLS,
) -> RadarLayout:
    center = size / 2
    max_radius = center - margin
    kept = [s for s in skills if s.level > 0][:max_skills]

    if not kept:
        return RadarLayout(size=size, center=center, max_radius=max_radius, max_value=float(REFERENCE_MAX))

    max_value = float(max(REFERENCE_MAX, max(s.level for s in kept)))
    n = len(kept)
    angles = np.arange(n) * (2 * np.pi / n) - np.pi / 2
    levels = np.array([s.level for s in kept], dtype=float)
    radii = levels / max_value * max_radius
    cos, sin = np.cos(angles), np.sin(angles)

    points: List[RadarPoint] = []
    for i, skill in enumerate(kept):
        points.append(
            RadarPoint(
                name=skill.name,
                level=skill.level,
                angle=float(angles[i]),
                radius=float(radii[i]),
                x=float(center + cos[i] * radii[i]),
                y=float(center + sin[i] * radii[i]),
                label_x=float(center + cos[i] * (max_radius + LABEL_OFFSET)),
                label_y=float(center + sin[i] * (max_radius + LABEL_OFFSET)),
            )
        )

    spokes = tuple(
        Spoke(center, center, float(center + cos[i] * max_radius), float(center + sin[i] * max_radius))
        for i in range(n)
    )
    path = " ".join(f"{'M' if i == 0 else 'L'} {_fmt(p.x)} {_fmt(p.y)}" for i, p in enumerate(points)) + " Z"

    return RadarLayout(
        size=size,
        center=center,
        max_radius=max_radius,
        max_value=max_value,
        points=tuple(points),
        rings=tuple(level * max_radius for level in GRID_LEVELS),
        spokes=spokes,
        path=path,
    )
