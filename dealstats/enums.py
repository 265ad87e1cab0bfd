"""Enumeration types for the deal rollup engine."""

from enum import Enum, IntEnum


class Endpoint(str, Enum):
    """Endpoint label carried in every output envelope."""

    COMPETITION_TOTALS = "COMPETITION_TOTALS"
    PROJECT_DEAL_STATS = "PROJECT_DEAL_STATS"
    DEAL_LIST = "DEAL_LIST"
    RECOVERED_DEALS_LIST = "RECOVERED_DEALS_LIST"


class RecoveryType(IntEnum):
    """Kind of recovery a recovered deal represents."""

    RESTORE = 1
    REPAIR = 2


class DealOutcome(str, Enum):
    """Terminal state of a deal on the totals path."""

    NOT_LIVE = "not_live"
    UNRESOLVABLE = "unresolvable"
    TEMPORARILY_EXCLUDED = "temporarily_excluded"
    NO_PARTICIPANT = "no_participant"
    BEFORE_PHASE = "before_phase"
    SHORT_DURATION = "short_duration"
    PIECE_CID_CAP = "piece_cid_cap"
    COUNTED = "counted"
