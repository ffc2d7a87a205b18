from zone01_profile.runtime.fetch_runner import (  # noqa: F401
    DashboardRunner,
    FetchCompletion,
    FetchStart,
    refresh_sync,
)

__all__ = [
    "DashboardRunner",
    "FetchCompletion",
    "FetchStart",
    "refresh_sync",
]
