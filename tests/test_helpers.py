"""Tests for dealstats.services._helpers."""

import json

from dealstats.services._helpers import (
    UNKNOWN_CID,
    dump_json,
    load_json,
    new_id,
    payload_cids,
)

EMPTY_DIR_V0: str = "QmUNLLsPACCz1vLxQVkXqqLX5R1X345qqfHbsf67hvA3Nn"
EMPTY_DIR_V1: str = "bafybeiczsscdsbs7ffqz55asqdf3smv6klcw3gofszvwlyarci47bgf354"


def test_new_id_uniqueness() -> None:
    ids: set[str] = {new_id() for _ in range(100)}
    assert len(ids) == 100


def test_load_json_accepts_bytes() -> None:
    assert load_json(b'{"payload": []}') == {"payload": []}


def test_load_json_none_and_non_objects() -> None:
    assert load_json(None) is None
    assert load_json("") is None
    assert load_json("[1, 2]") is None


def test_dump_json_handles_non_serializable() -> None:
    from pathlib import Path

    parsed: dict[str, object] = json.loads(dump_json({"p": Path("out")}))
    assert parsed["p"] == "out"


class TestPayloadCids:
    def test_v0_label(self) -> None:
        assert payload_cids(EMPTY_DIR_V0) == (EMPTY_DIR_V0, EMPTY_DIR_V1)

    def test_v1_label(self) -> None:
        assert payload_cids(EMPTY_DIR_V1) == (EMPTY_DIR_V1, EMPTY_DIR_V1)

    def test_free_text_label(self) -> None:
        assert payload_cids("my dataset, part 2") == (UNKNOWN_CID, UNKNOWN_CID)

    def test_empty_label(self) -> None:
        assert payload_cids("") == (UNKNOWN_CID, UNKNOWN_CID)

    def test_surrounding_whitespace_is_not_a_cid(self) -> None:
        assert payload_cids(f" {EMPTY_DIR_V0}") == (UNKNOWN_CID, UNKNOWN_CID)
