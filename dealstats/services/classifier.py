"""Qualification rules deciding whether a deal counts toward the rollup."""

from dataclasses import dataclass

from config import RollupSettings
from dealstats.enums import DealOutcome
from dealstats.services.interfaces import RecoveryMembership
from dealstats.services.schemas.chain import MarketDeal

EPOCHS_IN_DAY: int = 2880


@dataclass(frozen=True, slots=True)
class RollupContext:
    """Per-run thresholds. Built once at run start, never mutated."""

    chain_height: int
    phase_start_epoch: int
    recovery_start_epoch: int
    excluded_wallets: frozenset[str] = frozenset()
    epochs_per_day: int = EPOCHS_IN_DAY
    min_duration_days: int = 360
    recovery_min_duration_days: int = 499
    piece_cid_cap: int = 10

    @classmethod
    def from_settings(
        cls,
        settings: RollupSettings,
        chain_height: int,
        phase_start_epoch: int | None = None,
    ) -> "RollupContext":
        return cls(
            chain_height=chain_height,
            phase_start_epoch=(
                phase_start_epoch
                if phase_start_epoch is not None and phase_start_epoch > 0
                else settings.phase_start_epoch
            ),
            recovery_start_epoch=settings.recovery_start_epoch,
            excluded_wallets=frozenset(settings.excluded_wallets),
            epochs_per_day=settings.epochs_per_day,
            min_duration_days=settings.min_duration_days,
            recovery_min_duration_days=settings.recovery_min_duration_days,
            piece_cid_cap=settings.piece_cid_cap,
        )

    @property
    def min_duration_epochs(self) -> int:
        return self.epochs_per_day * self.min_duration_days

    @property
    def recovery_min_duration_epochs(self) -> int:
        return self.epochs_per_day * self.recovery_min_duration_days


class DealClassifier:
    """Evaluates the recovery path and the totals gates for one live deal.

    The two paths are independent: a deal may be recovered, counted, both or
    neither.
    """

    def __init__(self, context: RollupContext) -> None:
        self.context: RollupContext = context

    def is_recoverable(
        self,
        deal: MarketDeal,
        wallet: str,
        recovery: RecoveryMembership,
    ) -> bool:
        return (
            recovery.contains(wallet)
            and deal.sector_start_epoch >= self.context.recovery_start_epoch
            and deal.duration > self.context.recovery_min_duration_epochs
        )

    def is_temporarily_excluded(self, deal: MarketDeal, wallet: str) -> bool:
        return (
            wallet in self.context.excluded_wallets
            and deal.sector_start_epoch >= self.context.recovery_start_epoch
        )

    def gate(self, deal: MarketDeal, times_seen_all_time: int) -> DealOutcome:
        """Phase, duration and per-piece-cid cap gates, in that order.

        `times_seen_all_time` is the project's tally for the deal's piece cid
        with this deal already included.
        """
        if deal.sector_start_epoch < self.context.phase_start_epoch:
            return DealOutcome.BEFORE_PHASE
        # anything under the minimum duration: not qualified
        if deal.duration < self.context.min_duration_epochs:
            return DealOutcome.SHORT_DURATION
        if times_seen_all_time >= self.context.piece_cid_cap:
            return DealOutcome.PIECE_CID_CAP
        return DealOutcome.COUNTED

    def validate(self) -> list[str]:
        ctx: RollupContext = self.context
        errors: list[str] = []
        if ctx.chain_height <= 0:
            errors.append(f"Invalid chain height {ctx.chain_height}")
        if ctx.phase_start_epoch < 0:
            errors.append(f"Invalid phase start epoch {ctx.phase_start_epoch}")
        if ctx.recovery_start_epoch < 0:
            errors.append(f"Invalid recovery start epoch {ctx.recovery_start_epoch}")
        if ctx.epochs_per_day <= 0:
            errors.append(f"Invalid epochs per day {ctx.epochs_per_day}")
        if ctx.piece_cid_cap < 1:
            errors.append(f"Piece cid cap must be at least 1, got {ctx.piece_cid_cap}")
        return errors
