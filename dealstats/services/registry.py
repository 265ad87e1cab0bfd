"""Participant and recovery registries, loaded from a URL or a local file."""

import http.client
import re
import urllib.error
import urllib.request
from collections.abc import Iterable, Mapping
from pathlib import Path

import structlog

from dealstats.services._helpers import JsonDict, load_json
from dealstats.services._types import RegistrySummaryDict
from dealstats.services.errors import (
    EmptyRegistryError,
    RegistryFetchError,
    RegistryParseError,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# f0 id, f1 secp256k1, f2 actor, f3 bls, f4 delegated; t-prefixed on testnets.
_ADDRESS_RE = re.compile(r"^[ft][0-4][a-z0-9]+$")

FETCH_TIMEOUT: int = 60


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_source(source: str, save_to: Path, timeout: int = FETCH_TIMEOUT) -> bytes:
    """Read a registry source and keep a verbatim copy at `save_to`."""
    if _is_url(source):
        req = urllib.request.Request(source, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                if resp.status != 200:
                    raise RegistryFetchError(f"non-200 response: {resp.status}")
                raw: bytes = resp.read()
        except urllib.error.HTTPError as exc:
            raise RegistryFetchError(f"non-200 response: {exc.code}") from exc
        except urllib.error.URLError as exc:
            raise RegistryFetchError(f"failed to fetch '{source}': {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise RegistryFetchError(f"failed to fetch '{source}': {exc}") from exc
    else:
        try:
            raw = Path(source).read_bytes()
        except OSError as exc:
            raise RegistryFetchError(f"failed to open '{source}': {exc}") from exc

    try:
        save_to.write_bytes(raw)
    except OSError as exc:
        raise RegistryFetchError(f"failed to copy from {source} to {save_to}: {exc}") from exc
    return raw


def parse_address(raw: object) -> str:
    if not isinstance(raw, str) or not _ADDRESS_RE.match(raw):
        raise RegistryParseError(f"invalid address {raw!r}")
    return raw


def _payload(raw: bytes | str, source: str) -> list[object]:
    try:
        doc: JsonDict | None = load_json(raw)
    except ValueError as exc:
        raise RegistryParseError(f"'{source}' is not valid JSON: {exc}") from exc
    items: object = doc.get("payload") if doc else None
    if not isinstance(items, list):
        raise RegistryParseError(f"'{source}' has no 'payload' list")
    return items


def _datasets(row: Mapping[str, object]) -> list[str]:
    raw: object = row.get("curatedDataset")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise RegistryParseError(f"curatedDataset must be a list, got {type(raw).__name__}")
    return [str(d) for d in raw]


class ParticipantRegistry:
    """Maps wallets to registered projects.

    A project is disqualified when any dataset declared on any of its rows is
    in `excluded_datasets` (case-sensitive exact match). Wallets of a
    disqualified project never resolve to it.
    """

    def __init__(
        self,
        wallets: Mapping[str, str],
        datasets: Mapping[str, Iterable[str]] | None = None,
        excluded_datasets: Iterable[str] = (),
    ) -> None:
        self._wallets: dict[str, str] = dict(wallets)
        self._datasets: dict[str, frozenset[str]] = {
            p: frozenset(ds) for p, ds in (datasets or {}).items()
        }
        self.excluded_datasets: frozenset[str] = frozenset(excluded_datasets)

    @classmethod
    def from_payload(
        cls,
        raw: bytes | str,
        excluded_datasets: Iterable[str] = (),
        source: str = "<memory>",
    ) -> "ParticipantRegistry":
        wallets: dict[str, str] = {}
        datasets: dict[str, set[str]] = {}
        for row in _payload(raw, source):
            if not isinstance(row, dict):
                raise RegistryParseError(f"'{source}' payload entries must be objects")
            address: str = parse_address(row.get("address"))
            project: object = row.get("project")
            if not isinstance(project, str) or not project:
                raise RegistryParseError(f"entry for {address} has no project id")
            previous: str | None = wallets.get(address)
            if previous is not None and previous != project:
                logger.warning(
                    "Wallet registered to several projects",
                    wallet=address,
                    kept=project,
                    dropped=previous,
                )
            wallets[address] = project
            datasets.setdefault(project, set()).update(_datasets(row))

        registry = cls(wallets, datasets, excluded_datasets)
        if not registry.eligible_projects():
            raise EmptyRegistryError(
                f"no active projects/clients found in '{source}': unable to continue"
            )
        return registry

    @classmethod
    def load(
        cls,
        source: str,
        save_to: Path,
        excluded_datasets: Iterable[str] = (),
    ) -> "ParticipantRegistry":
        registry = cls.from_payload(fetch_source(source, save_to), excluded_datasets, source)
        logger.info("Loaded participant registry", source=source, **registry.summary())
        return registry

    def lookup(self, wallet: str) -> str | None:
        project: str | None = self._wallets.get(wallet)
        if project is None or self.is_disqualified(project):
            return None
        return project

    def is_disqualified(self, project_id: str) -> bool:
        return not self.excluded_datasets.isdisjoint(self._datasets.get(project_id, ()))

    def eligible_projects(self) -> list[str]:
        return sorted({p for p in self._wallets.values() if not self.is_disqualified(p)})

    def summary(self) -> RegistrySummaryDict:
        projects: set[str] = set(self._wallets.values())
        return RegistrySummaryDict(
            wallets=len(self._wallets),
            projects=len(projects),
            disqualified_projects=sorted(p for p in projects if self.is_disqualified(p)),
        )

    def __len__(self) -> int:
        return sum(1 for p in self._wallets.values() if not self.is_disqualified(p))


class RecoveryRegistry:
    """Wallets eligible for the recovery path."""

    def __init__(self, wallets: Iterable[str] = ()) -> None:
        self._wallets: frozenset[str] = frozenset(wallets)

    @classmethod
    def from_payload(cls, raw: bytes | str, source: str = "<memory>") -> "RecoveryRegistry":
        return cls(parse_address(a) for a in _payload(raw, source))

    @classmethod
    def load(cls, source: str, save_to: Path) -> "RecoveryRegistry":
        registry = cls.from_payload(fetch_source(source, save_to), source)
        logger.info("Loaded recovery registry", source=source, wallets=len(registry))
        return registry

    def contains(self, wallet: str) -> bool:
        return wallet in self._wallets

    def __contains__(self, wallet: object) -> bool:
        return wallet in self._wallets

    def __len__(self) -> int:
        return len(self._wallets)
