"""Typed dicts for the JSON documents the rollup emits.

Keeps exporter-facing methods explicit about their shape instead of returning bare dicts.
"""

import sys

if sys.version_info >= (3, 12):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict

# -- Competition totals ----------------------------------------------------


class CompetitionTotalsDict(TypedDict):
    total_unique_cids: int
    total_unique_providers: int
    total_unique_projects: int
    total_unique_clients: int
    total_num_deals: int
    total_stored_data_size: int
    filplus_total_num_deals: int
    filplus_total_stored_data_size: int


# -- Project stats ---------------------------------------------------------


class ClientStatsDict(TypedDict):
    client: str
    total_data_size: int
    total_num_cids: int
    total_num_deals: int
    total_num_providers: int


class ProjectStatsDict(TypedDict):
    project_id: str
    max_data_size_stored_with_single_provider: int
    max_same_cid_deals: int
    total_data_size: int
    total_num_cids: int
    total_num_deals: int
    total_num_providers: int
    clients: dict[str, ClientStatsDict]


# -- Deal lists ------------------------------------------------------------


class IndividualDealDict(TypedDict):
    project_id: str
    client: str
    deal_id: str
    deal_start_epoch: int
    miner_id: str
    payload_cid: str
    data_size: int


class RecoveredDealDict(TypedDict):
    deal_id: str
    client_address: str
    miner_id: str
    piece_cid: str
    label: str
    payload_cid: str
    padded_piece_size: int
    data_size: int
    deal_start_epoch: int
    deal_end_epoch: int
    recovery: int


# -- Envelope --------------------------------------------------------------


class EnvelopeDict(TypedDict):
    epoch: int
    endpoint: str
    payload: object


# -- Registries ------------------------------------------------------------


class RegistrySummaryDict(TypedDict):
    wallets: int
    projects: int
    disqualified_projects: list[str]
