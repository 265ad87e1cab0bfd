"""Shared utilities for the service layer."""

import json
from collections.abc import Mapping
from uuid import uuid4

import structlog
from multiformats import CID

# Every JSON document read by this codebase is an object at the top level.
JsonDict = dict[str, object]
Serializable = Mapping[str, object] | list[Mapping[str, object]]

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

UNKNOWN_CID: str = "unknown"


def new_id() -> str:
    return str(uuid4())


def load_json(raw: str | bytes | None) -> JsonDict | None:
    """Deserialize a JSON document. Always a dict or None in this codebase."""
    if not raw:
        return None
    result: object = json.loads(raw)
    if isinstance(result, dict):
        return dict(result)
    return None


def dump_json(obj: Serializable) -> str:
    return json.dumps(obj, default=str)


def payload_cids(label: str) -> tuple[str, str]:
    """Decode a deal label as a payload cid.

    Returns the cid in its canonical string form (base58 for v0, base32 for v1)
    and its CIDv1 base32 form. Labels that are not cids yield UNKNOWN_CID twice.
    """
    if not label:
        return UNKNOWN_CID, UNKNOWN_CID
    try:
        cid: CID = CID.decode(label)
    except Exception as exc:
        logger.debug("Label is not a cid", label=label[:64], error=str(exc))
        return UNKNOWN_CID, UNKNOWN_CID
    canonical: str = str(cid) if cid.version == 0 else cid.set(base="base32").encode()
    v1_b32: str = cid.set(version=1, base="base32").encode()
    return canonical, v1_b32
