"""Result dataclasses returned by service operations."""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from dealstats.enums import DealOutcome
from dealstats.services.schemas.deals import IndividualDeal, RecoveredDeal
from dealstats.services.schemas.stats import CompetitionTotals, ProjectStats


@dataclass
class RollupResult:
    run_id: str
    epoch: int
    totals: CompetitionTotals
    project_stats: dict[str, ProjectStats]
    deal_lists: dict[str, list[IndividualDeal]]
    recovered_deals: list[RecoveredDeal]
    outcomes: Counter[DealOutcome] = field(default_factory=Counter)
    warnings: list[str] = field(default_factory=list)


@dataclass
class ExportResult:
    run_id: str
    output_dir: Path
    files_written: list[Path]
    project_count: int
    deal_count: int
    recovered_count: int
