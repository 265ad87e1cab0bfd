"""Accumulators for the nested rollup statistics.

Fields with a leading underscore are tracking state; they are never emitted.
Derived fields are filled in by the aggregator's finalization step.
"""

from collections import Counter
from dataclasses import dataclass, field

from dealstats.services._types import (
    ClientStatsDict,
    CompetitionTotalsDict,
    ProjectStatsDict,
)


@dataclass
class CompetitionTotals:
    unique_cids: int = 0
    unique_providers: int = 0
    unique_projects: int = 0
    unique_clients: int = 0
    total_deals: int = 0
    total_bytes: int = 0
    filplus_total_deals: int = 0
    filplus_total_bytes: int = 0

    _seen_projects: set[str] = field(default_factory=set, repr=False)
    _seen_clients: set[str] = field(default_factory=set, repr=False)
    _seen_providers: set[str] = field(default_factory=set, repr=False)
    _seen_piece_cids: set[str] = field(default_factory=set, repr=False)

    def to_dict(self) -> CompetitionTotalsDict:
        return CompetitionTotalsDict(
            total_unique_cids=self.unique_cids,
            total_unique_providers=self.unique_providers,
            total_unique_projects=self.unique_projects,
            total_unique_clients=self.unique_clients,
            total_num_deals=self.total_deals,
            total_stored_data_size=self.total_bytes,
            filplus_total_num_deals=self.filplus_total_deals,
            filplus_total_stored_data_size=self.filplus_total_bytes,
        )


@dataclass
class ClientStats:
    client: str
    data_size: int = 0
    num_cids: int = 0
    num_deals: int = 0
    num_providers: int = 0

    _providers: set[str] = field(default_factory=set, repr=False)
    _cids: set[str] = field(default_factory=set, repr=False)

    def to_dict(self) -> ClientStatsDict:
        return ClientStatsDict(
            client=self.client,
            total_data_size=self.data_size,
            total_num_cids=self.num_cids,
            total_num_deals=self.num_deals,
            total_num_providers=self.num_providers,
        )


@dataclass
class ProjectStats:
    project_id: str
    data_size_max_provider: int = 0
    highest_cid_deal_count: int = 0
    data_size: int = 0
    num_cids: int = 0
    num_deals: int = 0
    num_providers: int = 0
    client_stats: dict[str, ClientStats] = field(default_factory=dict)

    _data_per_provider: Counter[str] = field(default_factory=Counter, repr=False)
    _times_seen_piece_cid: Counter[str] = field(default_factory=Counter, repr=False)
    _times_seen_piece_cid_all_time: Counter[str] = field(default_factory=Counter, repr=False)

    def times_seen_all_time(self, piece_cid: str) -> int:
        return self._times_seen_piece_cid_all_time[piece_cid]

    def to_dict(self) -> ProjectStatsDict:
        return ProjectStatsDict(
            project_id=self.project_id,
            max_data_size_stored_with_single_provider=self.data_size_max_provider,
            max_same_cid_deals=self.highest_cid_deal_count,
            total_data_size=self.data_size,
            total_num_cids=self.num_cids,
            total_num_deals=self.num_deals,
            total_num_providers=self.num_providers,
            clients={w: self.client_stats[w].to_dict() for w in sorted(self.client_stats)},
        )
