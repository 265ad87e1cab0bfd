"""Shared fixtures — run context, fake account key lookup, registries, engine runner."""

from collections.abc import Callable, Mapping

import pytest
from factories import HEIGHT, PHASE_START, RECOVERY_START, TIPSET_KEY, FakeAccountKeys

from dealstats.services.classifier import RollupContext
from dealstats.services.registry import ParticipantRegistry, RecoveryRegistry
from dealstats.services.resolver import WalletResolver
from dealstats.services.rollup import RollupEngine
from dealstats.services.schemas.chain import MarketDeal
from dealstats.services.schemas.results import RollupResult


@pytest.fixture()
def account_keys() -> FakeAccountKeys:
    return FakeAccountKeys()


@pytest.fixture()
def context() -> RollupContext:
    return RollupContext(
        chain_height=HEIGHT,
        phase_start_epoch=PHASE_START,
        recovery_start_epoch=RECOVERY_START,
        excluded_wallets=frozenset({"f1excluded"}),
    )


@pytest.fixture()
def participants() -> ParticipantRegistry:
    return ParticipantRegistry(
        wallets={
            "f1alice": "proj-a",
            "f1bob": "proj-b",
            "f1landsat": "proj-landsat",
            "f1excluded": "proj-a",
        },
        datasets={"proj-a": ["genomes"], "proj-landsat": ["landsat-8", "sentinel"]},
        excluded_datasets=["landsat-8"],
    )


@pytest.fixture()
def recovery() -> RecoveryRegistry:
    return RecoveryRegistry(["f3restore", "f1alice"])


@pytest.fixture()
def run_rollup(
    context: RollupContext,
    account_keys: FakeAccountKeys,
    participants: ParticipantRegistry,
    recovery: RecoveryRegistry,
) -> Callable[..., RollupResult]:
    def _run(deals: Mapping[str, MarketDeal], ctx: RollupContext | None = None) -> RollupResult:
        engine: RollupEngine = RollupEngine(
            ctx or context,
            WalletResolver(account_keys, TIPSET_KEY),
            participants,
            recovery,
        )
        return engine.run(deals)

    return _run
