"""Capabilities the rollup engine consumes from its collaborators."""

from typing import Protocol


class AccountKeyLookup(Protocol):
    def state_account_key(self, address: str, tipset_key: list[dict[str, str]]) -> str: ...


class ParticipantLookup(Protocol):
    def lookup(self, wallet: str) -> str | None: ...

    def is_disqualified(self, project_id: str) -> bool: ...


class RecoveryMembership(Protocol):
    def contains(self, wallet: str) -> bool: ...
