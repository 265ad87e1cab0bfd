"""Flat per-deal records emitted by the rollup."""

from dataclasses import dataclass

from dealstats.enums import RecoveryType
from dealstats.services._types import IndividualDealDict, RecoveredDealDict


@dataclass(frozen=True, slots=True)
class IndividualDeal:
    project_id: str
    client: str
    deal_id: str
    deal_start_epoch: int
    miner_id: str
    payload_cid: str
    padded_size: int

    def to_dict(self) -> IndividualDealDict:
        return IndividualDealDict(
            project_id=self.project_id,
            client=self.client,
            deal_id=self.deal_id,
            deal_start_epoch=self.deal_start_epoch,
            miner_id=self.miner_id,
            payload_cid=self.payload_cid,
            data_size=self.padded_size,
        )


@dataclass(frozen=True, slots=True)
class RecoveredDeal:
    deal_id: str
    client_address: str
    miner_id: str
    piece_cid: str
    label: str
    payload_cid_b32: str
    padded_piece_size: int
    data_size: int
    deal_start_epoch: int
    deal_end_epoch: int
    recovery_type: RecoveryType = RecoveryType.RESTORE

    def to_dict(self) -> RecoveredDealDict:
        return RecoveredDealDict(
            deal_id=self.deal_id,
            client_address=self.client_address,
            miner_id=self.miner_id,
            piece_cid=self.piece_cid,
            label=self.label,
            payload_cid=self.payload_cid_b32,
            padded_piece_size=self.padded_piece_size,
            data_size=self.data_size,
            deal_start_epoch=self.deal_start_epoch,
            deal_end_epoch=self.deal_end_epoch,
            recovery=int(self.recovery_type),
        )
