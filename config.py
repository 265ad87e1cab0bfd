"""Rollup worker settings — Lotus access and program thresholds, Pydantic-based.

Lotus endpoint selection:
  - LOTUS_API_URL set and non-empty -> used as-is (LOTUS_TOKEN optional)
  - LOTUS_API_URL absent/empty -> read `api` and `token` from the Lotus repo (LOTUS_REPO, default ~/.lotus)
"""

import re
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_MULTIADDR_RE = re.compile(r"^/(?:ip4|ip6|dns|dns4|dns6)/([^/]+)/tcp/(\d+)(?:/(https?|wss?))?")


def _project_root() -> Path:
    """Project root. config.py lives at the repository root."""
    return Path(__file__).resolve().parent


def _ensure_env_loaded() -> None:
    """Load .env from the project root (then cwd). Idempotent."""
    for candidate in (_project_root() / ".env", Path.cwd() / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)


_ensure_env_loaded()


def multiaddr_to_url(multiaddr: str) -> str:
    """Translate a Lotus API multiaddr (/ip4/127.0.0.1/tcp/1234/http) into a JSON-RPC URL."""
    m = _MULTIADDR_RE.match(multiaddr.strip())
    if m is None:
        raise ValueError(f"Unsupported API multiaddr '{multiaddr}'")
    host, port, proto = m.group(1), m.group(2), m.group(3) or "http"
    scheme = {"ws": "http", "wss": "https"}.get(proto, proto)
    return f"{scheme}://{host}:{port}/rpc/v0"


class LotusSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LOTUS_",
        env_file=(str(_project_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    repo: str = Field(default="~/.lotus", description="Lotus repo holding `api` and `token` files.")
    api_url: str | None = Field(default=None, description="JSON-RPC endpoint; overrides the repo.")
    token: str | None = Field(default=None)
    rpc_timeout: int = Field(default=600, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    epoch_lookback: int = Field(default=10, description="Epochs behind head used as the default tipset.")

    def _repo_path(self) -> Path:
        return Path(self.repo).expanduser()

    def _read_repo_file(self, name: str) -> str | None:
        path: Path = self._repo_path() / name
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8").strip() or None

    def endpoint(self) -> str:
        url: str = (self.api_url or "").strip()
        if url:
            return url
        multiaddr: str | None = self._read_repo_file("api")
        if multiaddr is None:
            return "http://127.0.0.1:1234/rpc/v0"
        return multiaddr_to_url(multiaddr)

    def auth_token(self) -> str | None:
        if self.token:
            return self.token.strip()
        return self._read_repo_file("token")


class RollupSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ROLLUP_",
        env_file=(str(_project_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 1623840: Fri Mar 11 18:00:00 2022
    phase_start_epoch: int = Field(default=1623840)
    # 1381920: Fri Dec 17 18:00:00 2021
    recovery_start_epoch: int = Field(default=1381920)
    excluded_datasets: list[str] = Field(default_factory=lambda: ["landsat-8"])
    excluded_wallets: list[str] = Field(
        default_factory=lambda: ["f17ia7m5mvizrdug3sqtevqw3tifiqvxqr3kdaeuq"],
        description="Wallets kept out of totals once past the recovery start epoch.",
    )
    epochs_per_day: int = Field(default=2880)
    min_duration_days: int = Field(default=360)
    recovery_min_duration_days: int = Field(default=499)
    piece_cid_cap: int = Field(default=10)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEALSTATS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    lotus: LotusSettings = Field(default_factory=LotusSettings)
    rollup: RollupSettings = Field(default_factory=RollupSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
