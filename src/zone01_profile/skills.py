from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Tuple

from zone01_profile.core import RankedSkill, SkillRecord


SKILL_PREFIX = "skill_"

# ---------------------------------------------------------------------------
# Display names (single source of truth)
#
# Codes missing here still get a readable name through ``display_name``.
# ---------------------------------------------------------------------------

SKILL_DISPLAY_NAMES: Mapping[str, str] = {
    "skill_prog": "Programming",
    "skill_go": "Golang",
    "skill_back-end": "Back-End",
    "skill_front-end": "Front-End",
    "skill_js": "JavaScript",
    "skill_html": "HTML",
    "skill_css": "CSS",
    "skill_sql": "SQL",
    "skill_docker": "Docker",
    "skill_algo": "Algorithms",
    "skill_tcp": "TCP/IP",
    "skill_unix": "Unix/Linux",
    "skill_sys-admin": "System Admin",
    "skill_game": "Game Development",
}


def fallback_name(code: str) -> str:
    name = code[len(SKILL_PREFIX):] if code.startswith(SKILL_PREFIX) else code
    name = name.replace("-", " ").replace("_", " ").strip()
    return name or code


def display_name(code: str) -> str:
    """Friendly name for any skill code (table hit or fallback)."""
    return SKILL_DISPLAY_NAMES.get(code) or fallback_name(code)


@dataclass(frozen=True)
class SkillRanking:
    skills: Tuple[RankedSkill, ...] = ()
    top: Tuple[RankedSkill, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.skills


def best_per_code(records: Iterable[SkillRecord]) -> Dict[str, int]:
    best: Dict[str, int] = {}
    for r in records:
        if r.type not in best or r.amount > best[r.type]:
            best[r.type] = r.amount
    return best


def normalize_skills(records: Iterable[SkillRecord], *, top_n: int = 3) -> SkillRanking:
    ranked = [
        RankedSkill(code=code, name=display_name(code), level=level)
        for code, level in best_per_code(records).items()
    ]
    ranked.sort(key=lambda s: (-s.level, s.name))
    return SkillRanking(skills=tuple(ranked), top=tuple(ranked[:max(top_n, 0)]))


def validate_display_names(*, strict: bool = True) -> List[str]:
    """
    Validate that:
      - every code carries the skill prefix
      - display names are unique and non-empty
    """
    issues: List[str] = []
    seen: Dict[str, str] = {}

    for code, name in SKILL_DISPLAY_NAMES.items():
        if not code.startswith(SKILL_PREFIX):
            issues.append(f"code '{code}' lacks prefix '{SKILL_PREFIX}'")
        if not name.strip():
            issues.append(f"code '{code}' has an empty display name")
        elif name in seen:
            issues.append(f"display name '{name}' used by both '{seen[name]}' and '{code}'")
        else:
            seen[name] = code

    if strict and issues:
        raise ValueError("Skill name validation failed:\n- " + "\n- ".join(issues))
    return issues
