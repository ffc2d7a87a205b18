from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set

from zone01_profile.core import FolderTaxonomy, TransactionRecord


DEFAULT_ROOT = "athens"

# Only records whose direct container is one of these become folders.
FOLDER_PARENT_TYPES = frozenset({"module", "piscine"})


# ---------------------------------------------------------------------------
# Depth rules
#
# Keyed by the number of path segments AFTER the root segment.
# ``index`` points into those segments. Anything nested deeper than the
# "collapsed" threshold is attributed to its 3-level ancestor.
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DepthRule:
    name: str
    min_depth: int
    max_depth: Optional[int]  # None = unbounded
    index: int

    def applies(self, depth: int) -> bool:
        if depth < self.min_depth:
            return False
        return self.max_depth is None or depth <= self.max_depth


DEPTH_RULES: Sequence[DepthRule] = (
    DepthRule(name="division", min_depth=2, max_depth=2, index=0),    # /root/div-01/project
    DepthRule(name="module", min_depth=3, max_depth=3, index=1),      # /root/div-01/piscine-js/ex
    DepthRule(name="collapsed", min_depth=4, max_depth=None, index=1),  # /root/div-01/piscine-js/q/ex
)


def split_path(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def rule_for_depth(depth: int) -> Optional[DepthRule]:
    for rule in DEPTH_RULES:
        if rule.applies(depth):
            return rule
    return None


def category_for_path(path: str, *, root: str = DEFAULT_ROOT) -> Optional[str]:
    """Folder a path belongs to, or None when it is outside ``root`` or too shallow."""
    parts = split_path(path)
    if not parts or parts[0] != root:
        return None

    below_root = parts[1:]
    rule = rule_for_depth(len(below_root))
    if rule is None:
        return None
    return below_root[rule.index]


def qualifies_for_taxonomy(record: TransactionRecord) -> bool:
    obj = record.object
    if obj is None or obj.nearest_parent is None:
        return False
    return obj.nearest_parent.type in FOLDER_PARENT_TYPES


def extract_folders(records: Iterable[TransactionRecord], *, root: str = DEFAULT_ROOT) -> FolderTaxonomy:
    found: Set[str] = set()
    for record in records:
        if not record.path:
            continue
        folder = category_for_path(record.path, root=root)
        if folder and qualifies_for_taxonomy(record):
            found.add(folder)
    return FolderTaxonomy.of(found)


def validate_depth_rules(*, strict: bool = True) -> List[str]:
    """
    Checks that the rule table is unambiguous:
      - no two rules claim the same depth
      - only the last rule may be unbounded
      - every index fits inside the minimum depth it applies to
    """
    issues: List[str] = []

    for i, rule in enumerate(DEPTH_RULES):
        if rule.index >= rule.min_depth:
            issues.append(f"rule {rule.name}: index {rule.index} out of range for depth {rule.min_depth}")
        if rule.max_depth is None and i != len(DEPTH_RULES) - 1:
            issues.append(f"rule {rule.name}: only the last rule may be unbounded")
        if i:
            prev = DEPTH_RULES[i - 1]
            if prev.max_depth is None or prev.max_depth >= rule.min_depth:
                issues.append(f"rules {prev.name} and {rule.name} overlap")

    if strict and issues:
        raise ValueError("Depth rule validation failed:\n- " + "\n- ".join(issues))
    return issues
