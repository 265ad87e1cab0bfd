"""Resolution of on-chain client handles to canonical wallet addresses."""

import structlog

from dealstats.services.errors import LotusClientError
from dealstats.services.interfaces import AccountKeyLookup

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class WalletResolver:
    """Maps client ids (f0...) to account keys as of one tipset.

    Resolutions are cached for the lifetime of the instance; create one per run.
    Failures are not cached, so a handle that failed is retried when it shows
    up on a later deal.
    """

    def __init__(self, lookup: AccountKeyLookup, tipset_key: list[dict[str, str]]) -> None:
        self.lookup: AccountKeyLookup = lookup
        self.tipset_key: list[dict[str, str]] = tipset_key
        self._resolved: dict[str, str] = {}
        self.failures: int = 0

    def resolve(self, client: str) -> str | None:
        wallet: str | None = self._resolved.get(client)
        if wallet is not None:
            return wallet
        try:
            wallet = self.lookup.state_account_key(client, self.tipset_key)
        except LotusClientError as exc:
            self.failures += 1
            logger.warning(
                "Failed to resolve id to wallet address",
                client=client,
                error=str(exc),
            )
            return None
        self._resolved[client] = wallet
        return wallet

    def __len__(self) -> int:
        return len(self._resolved)
