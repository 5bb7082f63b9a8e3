"""Persistence layer for DnD Director.

SQLite-backed storage for campaign progress, the credit ledger, the
campaign log and memory entities.
"""

from dnd_director.storage.database import (
    CampaignStore,
    LogRecord,
    UsageRecord,
    get_campaign_store,
)

__all__ = [
    "CampaignStore",
    "LogRecord",
    "UsageRecord",
    "get_campaign_store",
]
