"""Chain-related data transfer objects."""

from collections.abc import Mapping
from dataclasses import dataclass


def _link(raw: object) -> str:
    """Render a Lotus cid link ({"/": "bafy..."}) or bare string as a string."""
    if isinstance(raw, Mapping):
        return str(raw.get("/", ""))
    return str(raw) if raw is not None else ""


def _section(raw: Mapping[str, object], key: str) -> Mapping[str, object]:
    value: object = raw.get(key)
    if not isinstance(value, Mapping):
        raise ValueError(f"market deal is missing its '{key}' object")
    return value


@dataclass(frozen=True, slots=True)
class TipSet:
    height: int
    cids: tuple[str, ...]

    @property
    def key(self) -> list[dict[str, str]]:
        """Tipset key in the JSON shape the Lotus API expects."""
        return [{"/": c} for c in self.cids]

    @classmethod
    def from_lotus(cls, raw: Mapping[str, object]) -> "TipSet":
        cids: object = raw.get("Cids") or []
        return cls(
            height=int(str(raw.get("Height", 0))),
            cids=tuple(_link(c) for c in cids) if isinstance(cids, list) else (),
        )


@dataclass(frozen=True, slots=True)
class MarketDeal:
    """One storage deal as observed in a StateMarketDeals snapshot."""

    deal_id: str
    client: str
    provider: str
    piece_cid: str
    piece_size: int
    start_epoch: int
    end_epoch: int
    sector_start_epoch: int
    slash_epoch: int = -1
    verified_deal: bool = False
    label: str = ""

    @property
    def duration(self) -> int:
        return self.end_epoch - self.start_epoch

    @classmethod
    def from_lotus(cls, deal_id: str, raw: Mapping[str, object]) -> "MarketDeal":
        proposal: Mapping[str, object] = _section(raw, "Proposal")
        state: Mapping[str, object] = _section(raw, "State")
        label: object = proposal.get("Label")
        return cls(
            deal_id=deal_id,
            client=str(proposal.get("Client", "")),
            provider=str(proposal.get("Provider", "")),
            piece_cid=_link(proposal.get("PieceCID")),
            piece_size=int(str(proposal.get("PieceSize", 0))),
            start_epoch=int(str(proposal.get("StartEpoch", 0))),
            end_epoch=int(str(proposal.get("EndEpoch", 0))),
            sector_start_epoch=int(str(state.get("SectorStartEpoch", -1))),
            slash_epoch=int(str(state.get("SlashEpoch", -1))),
            verified_deal=bool(proposal.get("VerifiedDeal", False)),
            label=label if isinstance(label, str) else "",
        )
