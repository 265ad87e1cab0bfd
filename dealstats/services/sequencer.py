"""Deterministic ordering of the deal snapshot.

StateMarketDeals comes back as a JSON object, so nothing can be assumed about
its iteration order. Deals are filtered down to live ones and put into a total
order before classification; per-project deal lists get their own order right
before emission.
"""

from collections.abc import Iterable, Mapping

from dealstats.services.schemas.chain import MarketDeal
from dealstats.services.schemas.deals import IndividualDeal


def is_live(deal: MarketDeal, chain_height: int) -> bool:
    """Only deals whose sectors have properly started count, not past/future ones.

    A sector start of 0 is treated as uninitialized. A set slash epoch means the
    underlying sector is terminated and the deal will soon leave the state.
    """
    return 0 < deal.sector_start_epoch <= chain_height and deal.slash_epoch <= -1


def _numeric_id(deal_id: str) -> int:
    try:
        return int(deal_id)
    except ValueError:
        return 0


def order_deals(deals: Mapping[str, MarketDeal], chain_height: int) -> list[str]:
    """Return ids of live deals by (sector start, proposal start, numeric id)."""
    live: list[str] = [did for did, deal in deals.items() if is_live(deal, chain_height)]
    return sorted(
        live,
        key=lambda did: (
            deals[did].sector_start_epoch,
            deals[did].start_epoch,
            _numeric_id(did),
            did,
        ),
    )


def sort_deal_list(deal_list: Iterable[IndividualDeal]) -> list[IndividualDeal]:
    """Largest pieces first; equal sizes keep their classification order."""
    return sorted(deal_list, key=lambda d: d.padded_size, reverse=True)
