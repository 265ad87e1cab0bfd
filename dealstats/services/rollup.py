"""Rollup engine: one deterministic pass over a market deal snapshot."""

from collections import Counter
from collections.abc import Mapping

import structlog

from dealstats.enums import DealOutcome
from dealstats.services._helpers import new_id, payload_cids
from dealstats.services.aggregation import Aggregator
from dealstats.services.classifier import DealClassifier, RollupContext
from dealstats.services.errors import RollupError
from dealstats.services.interfaces import ParticipantLookup, RecoveryMembership
from dealstats.services.resolver import WalletResolver
from dealstats.services.schemas.chain import MarketDeal
from dealstats.services.schemas.results import RollupResult
from dealstats.services.sequencer import order_deals, sort_deal_list

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class RollupEngine:
    """Classifies and aggregates deals for one run.

    Performs no I/O of its own beyond the resolver's account key lookups.
    """

    def __init__(
        self,
        context: RollupContext,
        resolver: WalletResolver,
        participants: ParticipantLookup,
        recovery: RecoveryMembership,
    ) -> None:
        self.context: RollupContext = context
        self.resolver: WalletResolver = resolver
        self.participants: ParticipantLookup = participants
        self.recovery: RecoveryMembership = recovery
        self.classifier: DealClassifier = DealClassifier(context)

    def run(self, deals: Mapping[str, MarketDeal]) -> RollupResult:
        errors: list[str] = self.classifier.validate()
        if errors:
            raise RollupError("; ".join(errors))

        run_id: str = new_id()
        aggregator: Aggregator = Aggregator()
        outcomes: Counter[DealOutcome] = Counter()

        ordered: list[str] = order_deals(deals, self.context.chain_height)
        outcomes[DealOutcome.NOT_LIVE] = len(deals) - len(ordered)

        logger.info(
            "Starting rollup",
            run_id=run_id,
            epoch=self.context.chain_height,
            phase_start=self.context.phase_start_epoch,
            recovery_start=self.context.recovery_start_epoch,
            deals=len(deals),
            live_deals=len(ordered),
        )

        for deal_id in ordered:
            outcome: DealOutcome = self._classify(deals[deal_id], aggregator)
            outcomes[outcome] += 1

        aggregator.finalize()

        deal_lists = {
            project: sort_deal_list(dl) for project, dl in sorted(aggregator.deal_lists.items())
        }
        warnings: list[str] = []
        if self.resolver.failures:
            warnings.append(f"{self.resolver.failures} client ids could not be resolved")

        logger.info(
            "Rollup complete",
            run_id=run_id,
            counted=outcomes[DealOutcome.COUNTED],
            recovered=len(aggregator.recovered_deals),
            projects=len(aggregator.project_stats),
            outcomes={o.value: n for o, n in sorted(outcomes.items(), key=lambda i: i[0].value)},
        )

        return RollupResult(
            run_id=run_id,
            epoch=self.context.chain_height,
            totals=aggregator.totals,
            project_stats=dict(sorted(aggregator.project_stats.items())),
            deal_lists=deal_lists,
            recovered_deals=aggregator.recovered_deals,
            outcomes=outcomes,
            warnings=warnings,
        )

    def _classify(self, deal: MarketDeal, aggregator: Aggregator) -> DealOutcome:
        """Classify one live deal; liveness is filtered by order_deals beforehand."""
        wallet: str | None = self.resolver.resolve(deal.client)
        if wallet is None:
            return DealOutcome.UNRESOLVABLE

        payload_cid, payload_cid_b32 = payload_cids(deal.label)

        if self.classifier.is_recoverable(deal, wallet, self.recovery):
            aggregator.add_recovered(deal, wallet, payload_cid_b32)

        if self.classifier.is_temporarily_excluded(deal, wallet):
            return DealOutcome.TEMPORARILY_EXCLUDED

        project_id: str | None = self.participants.lookup(wallet)
        if project_id is None or self.participants.is_disqualified(project_id):
            return DealOutcome.NO_PARTICIPANT

        times_seen: int = aggregator.tally_piece_cid(project_id, deal.piece_cid)
        outcome: DealOutcome = self.classifier.gate(deal, times_seen)
        if outcome in (DealOutcome.COUNTED, DealOutcome.PIECE_CID_CAP):
            aggregator.mark_project(project_id)
        if outcome is DealOutcome.COUNTED:
            aggregator.add_counted(deal, wallet, project_id, payload_cid)
        return outcome
