"""Export service writing rollup results as JSON envelopes."""

import os
import tempfile
from pathlib import Path

import structlog

from dealstats.enums import Endpoint
from dealstats.services._helpers import dump_json
from dealstats.services._types import EnvelopeDict
from dealstats.services.errors import ExportError, OutputExistsError
from dealstats.services.schemas.results import ExportResult, RollupResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

BASIC_STATS_FILE: str = "basic_stats.json"
CLIENT_STATS_FILE: str = "client_stats.json"
RECOVERY_LIST_FILE: str = "recovery_deallist.json"
CLIENT_LIST_COPY: str = "client_list.json"
RESTORE_LIST_COPY: str = "restore_client_list.json"


def envelope(epoch: int, endpoint: Endpoint, payload: object) -> EnvelopeDict:
    return EnvelopeDict(epoch=epoch, endpoint=endpoint.value, payload=payload)


def deal_list_filename(project_id: str) -> str:
    if not project_id or "/" in project_id or "\\" in project_id or project_id.startswith("."):
        raise ExportError(f"Project id '{project_id}' cannot be used in a file name")
    return f"deals_list_{project_id}.json"


class ExportService:
    """Writes the four rollup output categories into a fresh directory."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir: Path = Path(output_dir)

    @property
    def client_list_path(self) -> Path:
        return self.output_dir / CLIENT_LIST_COPY

    @property
    def restore_list_path(self) -> Path:
        return self.output_dir / RESTORE_LIST_COPY

    def prepare(self) -> Path:
        """Create the output directory, refusing to reuse an existing one."""
        if self.output_dir.exists():
            raise OutputExistsError(
                f"unable to proceed: supplied stat target '{self.output_dir}' already exists"
            )
        try:
            self.output_dir.mkdir(parents=True, mode=0o755)
        except OSError as exc:
            raise ExportError(f"creation of destination '{self.output_dir}' failed: {exc}") from exc
        return self.output_dir

    def _write(self, filename: str, doc: EnvelopeDict) -> Path:
        """Write one document atomically: a reader sees the whole file or none of it."""
        target: Path = self.output_dir / filename
        fd, tmp = tempfile.mkstemp(dir=self.output_dir, prefix=f".{filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(dump_json(doc))
                fh.write("\n")
            os.replace(tmp, target)
        except OSError as exc:
            Path(tmp).unlink(missing_ok=True)
            raise ExportError(f"failed to write {target}: {exc}") from exc
        return target

    def write_rollup(self, result: RollupResult) -> ExportResult:
        if not self.output_dir.is_dir():
            raise ExportError(f"output directory '{self.output_dir}' does not exist")

        written: list[Path] = []
        deal_count: int = 0

        for project_id, deal_list in result.deal_lists.items():
            written.append(
                self._write(
                    deal_list_filename(project_id),
                    envelope(result.epoch, Endpoint.DEAL_LIST, [d.to_dict() for d in deal_list]),
                )
            )
            deal_count += len(deal_list)

        written.append(
            self._write(
                BASIC_STATS_FILE,
                envelope(result.epoch, Endpoint.COMPETITION_TOTALS, result.totals.to_dict()),
            )
        )
        written.append(
            self._write(
                RECOVERY_LIST_FILE,
                envelope(
                    result.epoch,
                    Endpoint.RECOVERED_DEALS_LIST,
                    [d.to_dict() for d in result.recovered_deals],
                ),
            )
        )
        written.append(
            self._write(
                CLIENT_STATS_FILE,
                envelope(
                    result.epoch,
                    Endpoint.PROJECT_DEAL_STATS,
                    {p: result.project_stats[p].to_dict() for p in sorted(result.project_stats)},
                ),
            )
        )

        logger.info(
            "Rollup exported",
            run_id=result.run_id,
            output_dir=str(self.output_dir),
            files=len(written),
            deals=deal_count,
        )
        return ExportResult(
            run_id=result.run_id,
            output_dir=self.output_dir,
            files_written=written,
            project_count=len(result.project_stats),
            deal_count=deal_count,
            recovered_count=len(result.recovered_deals),
        )
