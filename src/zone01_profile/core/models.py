from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple


ALL_FOLDERS = "all"

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> datetime:
    """Parse the ISO-8601 strings the query service emits (always tz-aware)."""
    if isinstance(value, datetime):
        ts = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class ParentRef:
    name: str
    type: str


@dataclass(frozen=True)
class ObjectRef:
    """Object a record points at, with its containers nearest-first."""

    name: str
    type: str = ""
    parents: Tuple[ParentRef, ...] = ()

    @property
    def nearest_parent(self) -> Optional[ParentRef]:
        return self.parents[0] if self.parents else None

    @classmethod
    def from_json(cls, raw: Optional[Mapping[str, Any]]) -> Optional["ObjectRef"]:
        if not raw:
            return None
        parents: List[ParentRef] = []
        for link in raw.get("parents") or []:
            # parents come wrapped as {"parent": {...}} by the object_child relation
            parent = link.get("parent") if isinstance(link, Mapping) and "parent" in link else link
            if not isinstance(parent, Mapping):
                continue
            parents.append(ParentRef(name=str(parent.get("name") or ""), type=str(parent.get("type") or "")))
        return cls(
            name=str(raw.get("name") or ""),
            type=str(raw.get("type") or ""),
            parents=tuple(parents),
        )


@dataclass(frozen=True)
class TransactionRecord:
    """Single experience-point grant."""

    id: Optional[int]
    amount: int
    created_at: Optional[datetime]
    path: str
    object: Optional[ObjectRef] = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"transaction {self.id}: negative amount {self.amount}")

    @property
    def label(self) -> str:
        if self.object and self.object.name:
            return self.object.name
        return "Unknown"

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> "TransactionRecord":
        created = raw.get("createdAt")
        return cls(
            id=raw.get("id"),
            amount=int(raw.get("amount") or 0),
            created_at=parse_timestamp(created) if created else None,
            path=str(raw.get("path") or ""),
            object=ObjectRef.from_json(raw.get("object")),
        )


@dataclass(frozen=True)
class SkillRecord:
    type: str
    amount: int

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> "SkillRecord":
        return cls(type=str(raw["type"]), amount=int(raw.get("amount") or 0))


@dataclass(frozen=True)
class ProgressRecord:
    id: Optional[int]
    grade: Optional[float]
    updated_at: Optional[datetime]
    object: Optional[ObjectRef] = None

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> "ProgressRecord":
        grade = raw.get("grade")
        updated = raw.get("updatedAt")
        return cls(
            id=raw.get("id"),
            grade=None if grade is None else float(grade),
            updated_at=parse_timestamp(updated) if updated else None,
            object=ObjectRef.from_json(raw.get("object")),
        )


@dataclass(frozen=True)
class FolderTaxonomy:
    """
    Filterable categories discovered from record paths.

    Invariants
    ----------
    * ``ALL_FOLDERS`` is always a member.
    * No duplicates; ``ordered()`` puts ``ALL_FOLDERS`` first, the rest sorted.
    """

    categories: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", frozenset(self.categories) | {ALL_FOLDERS})

    @classmethod
    def of(cls, names: Iterable[str]) -> "FolderTaxonomy":
        return cls(categories=frozenset(names))

    def ordered(self) -> List[str]:
        return [ALL_FOLDERS] + sorted(c for c in self.categories if c != ALL_FOLDERS)

    def __contains__(self, name: object) -> bool:
        return name in self.categories

    def __iter__(self) -> Iterator[str]:
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self.categories)


@dataclass(frozen=True)
class ChartPoint:
    timestamp: datetime
    value: float          # cumulative, display units
    label: str
    amount: int           # raw increment


@dataclass(frozen=True)
class RankedSkill:
    code: str
    name: str
    level: int


@dataclass(frozen=True)
class RadarPoint:
    name: str
    level: int
    angle: float
    radius: float
    x: float
    y: float
    label_x: float
    label_y: float


@dataclass(frozen=True)
class DashboardPayload:
    """Raw dataset returned for one category selection."""

    user_id: Optional[int]
    login: str
    transactions: Tuple[TransactionRecord, ...] = ()
    skills: Tuple[SkillRecord, ...] = ()
    progresses: Tuple[ProgressRecord, ...] = field(default_factory=tuple)
