"""Tests for dealstats.services.classifier."""

from dataclasses import replace

from factories import DAY, HEIGHT, PHASE_START, RECOVERY_START, make_deal

from config import RollupSettings
from dealstats.enums import DealOutcome
from dealstats.services.classifier import DealClassifier, RollupContext
from dealstats.services.registry import RecoveryRegistry


class TestRollupContext:
    def test_from_settings(self) -> None:
        settings = RollupSettings(phase_start_epoch=10, recovery_start_epoch=5)
        ctx: RollupContext = RollupContext.from_settings(settings, HEIGHT)
        assert ctx.phase_start_epoch == 10
        assert ctx.recovery_start_epoch == 5
        assert ctx.min_duration_epochs == 360 * DAY
        assert ctx.recovery_min_duration_epochs == 499 * DAY
        assert "f17ia7m5mvizrdug3sqtevqw3tifiqvxqr3kdaeuq" in ctx.excluded_wallets

    def test_positive_override_replaces_phase_start(self) -> None:
        settings = RollupSettings(phase_start_epoch=10)
        assert RollupContext.from_settings(settings, HEIGHT, 77).phase_start_epoch == 77

    def test_non_positive_override_is_ignored(self) -> None:
        settings = RollupSettings(phase_start_epoch=10)
        assert RollupContext.from_settings(settings, HEIGHT, 0).phase_start_epoch == 10
        assert RollupContext.from_settings(settings, HEIGHT, -3).phase_start_epoch == 10


class TestGate:
    def test_boundaries_are_inclusive(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        deal = make_deal(sector_start_epoch=PHASE_START, duration_days=360)
        assert classifier.gate(deal, 1) == DealOutcome.COUNTED

    def test_before_phase(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        deal = make_deal(sector_start_epoch=PHASE_START - 1)
        assert classifier.gate(deal, 1) == DealOutcome.BEFORE_PHASE

    def test_one_epoch_short_of_minimum_duration(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        deal = make_deal(duration_days=360)
        short = replace(deal, end_epoch=deal.end_epoch - 1)
        assert classifier.gate(short, 1) == DealOutcome.SHORT_DURATION

    def test_cap_applies_from_tenth_sighting(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        deal = make_deal()
        assert classifier.gate(deal, 9) == DealOutcome.COUNTED
        assert classifier.gate(deal, 10) == DealOutcome.PIECE_CID_CAP
        assert classifier.gate(deal, 11) == DealOutcome.PIECE_CID_CAP

    def test_phase_checked_before_cap(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        deal = make_deal(sector_start_epoch=PHASE_START - 1)
        assert classifier.gate(deal, 50) == DealOutcome.BEFORE_PHASE


class TestRecovery:
    def test_long_deal_of_recovery_wallet_after_start(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        recovery = RecoveryRegistry(["f3restore"])
        deal = make_deal(sector_start_epoch=RECOVERY_START, duration_days=500)
        assert classifier.is_recoverable(deal, "f3restore", recovery)

    def test_duration_threshold_is_exclusive(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        recovery = RecoveryRegistry(["f3restore"])
        exact = make_deal(sector_start_epoch=RECOVERY_START, duration_days=499)
        assert not classifier.is_recoverable(exact, "f3restore", recovery)
        longer = replace(exact, end_epoch=exact.end_epoch + 1)
        assert classifier.is_recoverable(longer, "f3restore", recovery)

    def test_before_recovery_start(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        recovery = RecoveryRegistry(["f3restore"])
        deal = make_deal(sector_start_epoch=RECOVERY_START - 1, duration_days=540)
        assert not classifier.is_recoverable(deal, "f3restore", recovery)

    def test_wallet_not_in_registry(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        deal = make_deal(duration_days=540)
        assert not classifier.is_recoverable(deal, "f1bob", RecoveryRegistry(["f3restore"]))


class TestTemporaryExclusion:
    def test_excluded_wallet_from_recovery_start(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        assert classifier.is_temporarily_excluded(
            make_deal(sector_start_epoch=RECOVERY_START), "f1excluded"
        )

    def test_not_applied_retroactively(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        assert not classifier.is_temporarily_excluded(
            make_deal(sector_start_epoch=RECOVERY_START - 1), "f1excluded"
        )

    def test_other_wallets_unaffected(self, context: RollupContext) -> None:
        classifier: DealClassifier = DealClassifier(context)
        assert not classifier.is_temporarily_excluded(make_deal(), "f1alice")


class TestValidate:
    def test_valid_context(self, context: RollupContext) -> None:
        assert DealClassifier(context).validate() == []

    def test_invalid_values(self) -> None:
        ctx = RollupContext(
            chain_height=0,
            phase_start_epoch=-1,
            recovery_start_epoch=0,
            piece_cid_cap=0,
        )
        errors: list[str] = DealClassifier(ctx).validate()
        assert len(errors) == 3
        assert any("chain height" in e for e in errors)
        assert any("cap" in e for e in errors)
