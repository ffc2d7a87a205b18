from zone01_profile.core.models import (  # noqa: F401
    ALL_FOLDERS,
    ChartPoint,
    DashboardPayload,
    FolderTaxonomy,
    ObjectRef,
    ParentRef,
    ProgressRecord,
    RadarPoint,
    RankedSkill,
    SkillRecord,
    TransactionRecord,
    parse_timestamp,
)

__all__ = [
    "ALL_FOLDERS",
    "ChartPoint",
    "DashboardPayload",
    "FolderTaxonomy",
    "ObjectRef",
    "ParentRef",
    "ProgressRecord",
    "RadarPoint",
    "RankedSkill",
    "SkillRecord",
    "TransactionRecord",
    "parse_timestamp",
]
