"""Shared exception hierarchy for dealstats services."""

# ── Lotus ─────────────────────────────────────────────────────────────────────


class LotusClientError(Exception):
    """Base exception for Lotus client errors."""


class RPCError(LotusClientError):
    """RPC call failed."""


class TipSetNotFoundError(LotusClientError):
    """Requested tipset not found."""


class LotusConnectionError(LotusClientError):
    """Cannot connect to the Lotus API endpoint."""


# ── Registries ────────────────────────────────────────────────────────────────


class RegistryError(Exception):
    """Base exception for participant / recovery registry errors."""


class RegistryFetchError(RegistryError):
    """Registry source could not be downloaded or opened."""


class RegistryParseError(RegistryError):
    """Registry source is not in the expected shape."""


class EmptyRegistryError(RegistryError):
    """No eligible participants remain after disqualification."""


# ── Rollup ────────────────────────────────────────────────────────────────────


class RollupError(Exception):
    """Base exception for rollup engine errors."""


# ── Export ────────────────────────────────────────────────────────────────────


class ExportError(Exception):
    """Base exception for export errors."""


class OutputExistsError(ExportError):
    """Output directory already exists."""
