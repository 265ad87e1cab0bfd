"""Aggregation of classified deals into global, per-project and per-wallet stats."""

import structlog

from dealstats.enums import RecoveryType
from dealstats.services.errors import RollupError
from dealstats.services.schemas.chain import MarketDeal
from dealstats.services.schemas.deals import IndividualDeal, RecoveredDeal
from dealstats.services.schemas.stats import ClientStats, CompetitionTotals, ProjectStats

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class Aggregator:
    """Folds deals into the nested statistics with O(1) work per deal.

    Summary fields depending on the complete set (unique counts, per-project
    maxima) are derived once in finalize(), which must run after the last deal
    and before emission.
    """

    def __init__(self) -> None:
        self.totals: CompetitionTotals = CompetitionTotals()
        self.project_stats: dict[str, ProjectStats] = {}
        self.deal_lists: dict[str, list[IndividualDeal]] = {}
        self.recovered_deals: list[RecoveredDeal] = []
        self._finalized: bool = False

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def _require_open(self) -> None:
        if self._finalized:
            raise RollupError("Aggregator already finalized")

    def project(self, project_id: str) -> ProjectStats:
        entry: ProjectStats | None = self.project_stats.get(project_id)
        if entry is None:
            entry = ProjectStats(project_id=project_id)
            self.project_stats[project_id] = entry
        return entry

    def tally_piece_cid(self, project_id: str, piece_cid: str) -> int:
        """Bump the project's all-time tally for a piece cid and return the new count."""
        self._require_open()
        entry: ProjectStats = self.project(project_id)
        entry._times_seen_piece_cid_all_time[piece_cid] += 1
        return entry._times_seen_piece_cid_all_time[piece_cid]

    def mark_project(self, project_id: str) -> None:
        self._require_open()
        self.totals._seen_projects.add(project_id)

    def add_recovered(self, deal: MarketDeal, wallet: str, payload_cid_b32: str) -> RecoveredDeal:
        self._require_open()
        recovered: RecoveredDeal = RecoveredDeal(
            deal_id=deal.deal_id,
            client_address=wallet,
            miner_id=deal.provider,
            piece_cid=deal.piece_cid,
            label=deal.label,
            payload_cid_b32=payload_cid_b32,
            padded_piece_size=deal.piece_size,
            data_size=deal.piece_size,
            deal_start_epoch=deal.start_epoch,
            deal_end_epoch=deal.end_epoch,
            recovery_type=RecoveryType.RESTORE,
        )
        self.recovered_deals.append(recovered)
        return recovered

    def add_counted(
        self,
        deal: MarketDeal,
        wallet: str,
        project_id: str,
        payload_cid: str,
    ) -> IndividualDeal:
        self._require_open()
        totals: CompetitionTotals = self.totals
        entry: ProjectStats = self.project(project_id)
        client: ClientStats | None = entry.client_stats.get(wallet)
        if client is None:
            client = ClientStats(client=wallet)
            entry.client_stats[wallet] = client

        size: int = deal.piece_size

        totals._seen_clients.add(wallet)
        totals._seen_providers.add(deal.provider)
        totals._seen_piece_cids.add(deal.piece_cid)
        totals.total_bytes += size
        totals.total_deals += 1
        if deal.verified_deal:
            totals.filplus_total_deals += 1
            totals.filplus_total_bytes += size

        entry.data_size += size
        entry.num_deals += 1
        entry._data_per_provider[deal.provider] += size
        entry._times_seen_piece_cid[deal.piece_cid] += 1

        client.data_size += size
        client.num_deals += 1
        client._providers.add(deal.provider)
        client._cids.add(deal.piece_cid)

        individual: IndividualDeal = IndividualDeal(
            project_id=project_id,
            client=wallet,
            deal_id=deal.deal_id,
            deal_start_epoch=deal.sector_start_epoch,
            miner_id=deal.provider,
            payload_cid=payload_cid,
            padded_size=size,
        )
        self.deal_lists.setdefault(project_id, []).append(individual)
        return individual

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize(self) -> None:
        if self._finalized:
            return

        totals: CompetitionTotals = self.totals
        totals.unique_cids = len(totals._seen_piece_cids)
        totals.unique_clients = len(totals._seen_clients)
        totals.unique_providers = len(totals._seen_providers)
        totals.unique_projects = len(totals._seen_projects)

        for ps in self.project_stats.values():
            ps.num_cids = len(ps._times_seen_piece_cid)
            ps.num_providers = len(ps._data_per_provider)
            ps.highest_cid_deal_count = max(ps._times_seen_piece_cid.values(), default=0)
            ps.data_size_max_provider = max(ps._data_per_provider.values(), default=0)
            for cs in ps.client_stats.values():
                cs.num_cids = len(cs._cids)
                cs.num_providers = len(cs._providers)

        self._finalized = True
        logger.debug(
            "Aggregation finalized",
            projects=len(self.project_stats),
            deals=totals.total_deals,
            recovered=len(self.recovered_deals),
        )
