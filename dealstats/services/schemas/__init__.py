"""Shared dataclasses for dealstats services."""

from dealstats.services.schemas.chain import MarketDeal, TipSet
from dealstats.services.schemas.deals import IndividualDeal, RecoveredDeal
from dealstats.services.schemas.results import ExportResult, RollupResult
from dealstats.services.schemas.stats import ClientStats, CompetitionTotals, ProjectStats

__all__ = [
    # Chain schemas
    "MarketDeal",
    "TipSet",
    # Deal records
    "IndividualDeal",
    "RecoveredDeal",
    # Statistics
    "ClientStats",
    "CompetitionTotals",
    "ProjectStats",
    # Result schemas
    "ExportResult",
    "RollupResult",
]
