"""Worker: translate current Lotus market state into slingshot rollups.

Usage:
    python -m worker.run_rollup OUT_DIR PROJECT_LIST RECOVERY_LIST
    python -m worker.run_rollup OUT_DIR https://host/projects.json restore.json --tipset @1700000
    python -m worker.run_rollup OUT_DIR projects.json restore.json --phasestart-epoch 1623840
"""

import argparse
import sys

import structlog

from config import Settings, get_settings
from dealstats.services.classifier import RollupContext
from dealstats.services.errors import ExportError, LotusClientError, RegistryError, RollupError
from dealstats.services.export import ExportService
from dealstats.services.lotus_client import LotusClient
from dealstats.services.registry import ParticipantRegistry, RecoveryRegistry
from dealstats.services.resolver import WalletResolver
from dealstats.services.rollup import RollupEngine
from dealstats.services.schemas.chain import MarketDeal, TipSet
from dealstats.services.schemas.results import ExportResult, RollupResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Translate current Lotus state into rollups for the slingshot program",
    )
    parser.add_argument("output_dir", help="Non-existent directory to write results to")
    parser.add_argument("project_list", help="URL or path of the eligible project list")
    parser.add_argument("recovery_list", help="URL or path of the recovery client list")
    parser.add_argument(
        "--tipset",
        default="",
        help=(
            "Tipset as comma separated block cids, or @height "
            f"(default: {settings.lotus.epoch_lookback} epochs behind current)"
        ),
    )
    parser.add_argument(
        "--phasestart-epoch",
        type=int,
        default=settings.rollup.phase_start_epoch,
        help="Epoch from which deals count toward the current phase",
    )
    return parser


def run(args: argparse.Namespace, settings: Settings, client: LotusClient | None = None) -> ExportResult:
    exporter: ExportService = ExportService(args.output_dir)
    exporter.prepare()

    participants: ParticipantRegistry = ParticipantRegistry.load(
        args.project_list,
        exporter.client_list_path,
        settings.rollup.excluded_datasets,
    )
    recovery: RecoveryRegistry = RecoveryRegistry.load(
        args.recovery_list,
        exporter.restore_list_path,
    )

    lotus: LotusClient = client or LotusClient()
    lotus.connect()
    tipset: TipSet = lotus.parse_tipset_ref(args.tipset) if args.tipset else lotus.lookback_tipset()
    logger.info("Using tipset", height=tipset.height, cids=len(tipset.cids))

    deals: dict[str, MarketDeal] = lotus.state_market_deals(tipset.key)

    context: RollupContext = RollupContext.from_settings(
        settings.rollup, tipset.height, args.phasestart_epoch
    )
    engine: RollupEngine = RollupEngine(
        context,
        WalletResolver(lotus, tipset.key),
        participants,
        recovery,
    )
    result: RollupResult = engine.run(deals)
    for warn in result.warnings:
        logger.warning("rollup_warning", detail=warn)

    return exporter.write_rollup(result)


def main(argv: list[str] | None = None) -> None:
    settings: Settings = get_settings()
    args: argparse.Namespace = build_parser(settings).parse_args(argv)

    try:
        result: ExportResult = run(args, settings)
    except (RegistryError, LotusClientError, RollupError, ExportError) as exc:
        logger.error("Rollup failed", error=str(exc), error_type=type(exc).__name__)
        sys.exit(1)

    logger.info(
        "Rollup written",
        run_id=result.run_id,
        output_dir=str(result.output_dir),
        projects=result.project_count,
        deals=result.deal_count,
        recovered=result.recovered_count,
    )


if __name__ == "__main__":
    main()
