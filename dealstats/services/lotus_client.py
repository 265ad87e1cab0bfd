"""Lotus JSON-RPC client for fetching chain and market state."""

import http.client
import itertools
import json
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from typing import Any

import structlog

from config import get_settings
from dealstats.services.errors import (
    LotusConnectionError,
    RPCError,
    TipSetNotFoundError,
)
from dealstats.services.schemas.chain import MarketDeal, TipSet

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class LotusClient:
    """Client for a Lotus full node's JSON-RPC API."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self.api_url: str = api_url or settings.lotus.endpoint()
        self.token: str | None = token or settings.lotus.auth_token()
        self.timeout: int = timeout if timeout is not None else settings.lotus.rpc_timeout
        self.retry_attempts: int = (
            retry_attempts if retry_attempts is not None else settings.lotus.retry_attempts
        )
        self.retry_delay: float = retry_delay if retry_delay is not None else settings.lotus.retry_delay
        self.epoch_lookback: int = settings.lotus.epoch_lookback
        if self.retry_attempts < 1:
            raise ValueError(f"retry_attempts must be at least 1, got {self.retry_attempts}")
        self._ids = itertools.count(1)
        self._connected: bool = False

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        req = urllib.request.Request(
            self.api_url,
            data=json.dumps(body).encode(),
            method="POST",
        )
        req.add_header("Content-Type", "application/json")
        if self.token:
            req.add_header("Authorization", f"Bearer {self.token}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw: bytes = resp.read()
        except urllib.error.HTTPError as exc:
            raise RPCError(f"HTTP {exc.code} from {self.api_url}") from exc
        except urllib.error.URLError as exc:
            raise LotusConnectionError(f"Cannot reach {self.api_url}: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            # socket timeouts, resets and truncated bodies
            raise LotusConnectionError(f"Connection to {self.api_url} failed: {exc}") from exc
        try:
            reply: object = json.loads(raw.decode())
        except ValueError as exc:
            raise RPCError(f"Invalid JSON-RPC reply from {self.api_url}") from exc
        if not isinstance(reply, dict):
            raise RPCError(f"Invalid JSON-RPC reply from {self.api_url}")
        return reply

    def _call(self, method: str, *params: Any) -> Any:
        body: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": f"Filecoin.{method}",
            "params": list(params),
            "id": next(self._ids),
        }
        reply: dict[str, Any] = self._post(body)
        error: object = reply.get("error")
        if error:
            message: str = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise RPCError(f"{method}: {message}")
        return reply.get("result")

    def _retry_call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        last_error: Exception | None = None
        for attempt in range(self.retry_attempts):
            try:
                return func(*args, **kwargs)
            except TipSetNotFoundError:
                raise
            except (RPCError, LotusConnectionError) as e:
                last_error = e
                logger.warning(
                    "RPC call failed, retrying",
                    attempt=attempt + 1,
                    error=str(e)[:100],
                )
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.retry_delay * (attempt + 1))
        raise RPCError(f"RPC call failed after {self.retry_attempts} attempts: {last_error}")

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def connect(self) -> bool:
        """Check the endpoint answers. Raises LotusConnectionError on failure."""
        try:
            version: object = self._call("Version")
        except (RPCError, LotusConnectionError) as e:
            raise LotusConnectionError(f"Failed to connect to {self.api_url}: {e}") from e
        self._connected = True
        logger.info(
            "Connected to Lotus",
            api_url=self.api_url[:50],
            version=version.get("Version") if isinstance(version, dict) else None,
        )
        return True

    def is_connected(self) -> bool:
        return self._connected

    def _require_connection(self) -> None:
        if not self.is_connected():
            raise LotusConnectionError("Not connected — call connect() first")

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    def chain_head(self) -> TipSet:
        self._require_connection()
        return TipSet.from_lotus(self._retry_call(self._call, "ChainHead"))

    def get_tipset_by_height(self, height: int, anchor: TipSet | None = None) -> TipSet:
        self._require_connection()

        def _fetch() -> TipSet:
            raw: object = self._call(
                "ChainGetTipSetByHeight", height, anchor.key if anchor else None
            )
            if not isinstance(raw, dict):
                raise TipSetNotFoundError(f"Tipset at height {height} not found")
            return TipSet.from_lotus(raw)

        return self._retry_call(_fetch)

    def get_tipset(self, cids: list[str]) -> TipSet:
        self._require_connection()

        def _fetch() -> TipSet:
            raw: object = self._call("ChainGetTipSet", [{"/": c} for c in cids])
            if not isinstance(raw, dict):
                raise TipSetNotFoundError(f"Tipset {','.join(cids)} not found")
            return TipSet.from_lotus(raw)

        return self._retry_call(_fetch)

    def lookback_tipset(self, lookback: int | None = None) -> TipSet:
        """The tipset `lookback` epochs behind the current head."""
        head: TipSet = self.chain_head()
        behind: int = self.epoch_lookback if lookback is None else lookback
        return self.get_tipset_by_height(head.height - behind, head)

    def parse_tipset_ref(self, ref: str) -> TipSet:
        """Resolve `@<height>` or a comma separated list of block cids."""
        ref = ref.strip()
        if not ref:
            raise TipSetNotFoundError("Empty tipset reference")
        if ref.startswith("@"):
            try:
                height: int = int(ref[1:])
            except ValueError as exc:
                raise TipSetNotFoundError(f"Invalid tipset height '{ref}'") from exc
            return self.get_tipset_by_height(height, self.chain_head())
        return self.get_tipset([c.strip() for c in ref.split(",") if c.strip()])

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def state_market_deals(self, tipset_key: list[dict[str, str]]) -> dict[str, MarketDeal]:
        self._require_connection()
        raw: object = self._retry_call(self._call, "StateMarketDeals", tipset_key)
        if not isinstance(raw, dict):
            raise RPCError("StateMarketDeals returned no deal map")
        deals: dict[str, MarketDeal] = {}
        for deal_id, info in raw.items():
            if not isinstance(info, dict):
                raise RPCError(f"Malformed market deal {deal_id}")
            try:
                deals[deal_id] = MarketDeal.from_lotus(deal_id, info)
            except ValueError as exc:
                raise RPCError(f"Malformed market deal {deal_id}: {exc}") from exc
        logger.info("Fetched market deals", deals=len(deals))
        return deals

    def state_account_key(self, address: str, tipset_key: list[dict[str, str]]) -> str:
        """Resolve an id address to its account key. Not retried: failures are per-deal."""
        self._require_connection()
        result: object = self._call("StateAccountKey", address, tipset_key)
        if not isinstance(result, str) or not result:
            raise RPCError(f"StateAccountKey returned no address for {address}")
        return result
