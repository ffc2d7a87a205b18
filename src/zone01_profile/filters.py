from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from zone01_profile.core import ALL_FOLDERS
from zone01_profile.folders import DEFAULT_ROOT


XP_TYPE = "xp"
DEFAULT_DIVISION = "div-01"
DEFAULT_CHECKPOINT = "checkpoint"


def like_to_regex(pattern: str) -> "re.Pattern[str]":
    """SQL LIKE -> anchored regex (``%`` any run, ``_`` any single char)."""
    out: List[str] = []
    for ch in pattern:
        if ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("^" + "".join(out) + "$", re.DOTALL)


@dataclass(frozen=True)
class PathClause:
    """Path must match ``include`` and, when set, must not match ``exclude``."""

    include: str
    exclude: Optional[str] = None

    def matches(self, path: str) -> bool:
        if not like_to_regex(self.include).match(path):
            return False
        if self.exclude is not None and like_to_regex(self.exclude).match(path):
            return False
        return True

    def to_where(self) -> Dict[str, Any]:
        where: Dict[str, Any] = {"path": {"_like": self.include}}
        if self.exclude is not None:
            where["_not"] = {"path": {"_like": self.exclude}}
        return where


@dataclass(frozen=True)
class TransactionFilter:
    """
    Declarative filter handed to the query service.

    ``any_of`` empty means no path restriction; otherwise a record matches when
    at least one clause does.
    """

    category: str
    type_eq: str = XP_TYPE
    any_of: Tuple[PathClause, ...] = ()

    @property
    def restricts_path(self) -> bool:
        return bool(self.any_of)

    def matches(self, type_: str, path: str) -> bool:
        if type_ != self.type_eq:
            return False
        if not self.any_of:
            return True
        return any(clause.matches(path) for clause in self.any_of)

    def to_where(self) -> Dict[str, Any]:
        where: Dict[str, Any] = {"type": {"_eq": self.type_eq}}
        if self.any_of:
            where["_or"] = [clause.to_where() for clause in self.any_of]
        return where


def build_filter(
    category: str,
    *,
    root: str = DEFAULT_ROOT,
    division: str = DEFAULT_DIVISION,
    checkpoint: str = DEFAULT_CHECKPOINT,
) -> TransactionFilter:
    if category == ALL_FOLDERS:
        return TransactionFilter(category=category)

    if category == division:
        # direct children are leaf exercises; checkpoints nest freely
        clauses = (
            PathClause(include=f"/{root}/{division}/%", exclude=f"/{root}/{division}/%/%"),
            PathClause(include=f"/{root}/{division}/{checkpoint}/%"),
        )
    else:
        clauses = (
            PathClause(include=f"/{root}/{category}/%"),
            PathClause(include=f"/{root}/%/{category}/%"),
        )
    return TransactionFilter(category=category, any_of=clauses)
