# src/grandpa/models.py
from __future__ import annotations

from typing import Annotated, Dict, Iterable, Optional, Protocol, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from grandpa.enums import DigestItemKind

Hash = Annotated[bytes, Field(min_length=32, max_length=32)]
AuthorityId = Annotated[bytes, Field(min_length=32, max_length=32)]
AuthoritySignature = Annotated[bytes, Field(min_length=64, max_length=64)]
EngineId = Annotated[bytes, Field(min_length=4, max_length=4)]
SetId = int
BlockNumber = int

# A block identity as the bridge sees it: (hash, number).
HeaderId = Tuple[bytes, int]


# ======================================================================
# 1. Header: the source-chain block header carried in a proof
# ======================================================================

class ChainHeader(Protocol):
    """
    Capability needed from a header by the ancestry index.

    Any chain's header type fits as long as it exposes its own hash,
    its parent hash and its number.
    """

    parent_hash: bytes
    number: int

    def hash(self) -> bytes:
        ...


class DigestItem(BaseModel):
    """
    One entry of a header digest.

    The layout of `data` depends on `kind`:
        • OTHER               → opaque bytes
        • CHANGES_TRIE_ROOT   → a 32-byte hash
        • CONSENSUS / SEAL / PRE_RUNTIME
                              → opaque bytes, with a 4-byte engine_id
        • CHANGES_TRIE_SIGNAL → the raw SCALE encoding of the signal
                                (an optional changes-trie configuration)
    """

    kind: DigestItemKind
    engine_id: Optional[EngineId] = None
    data: bytes = b""

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_layout(self) -> "DigestItem":
        needs_engine = self.kind in (
            DigestItemKind.CONSENSUS,
            DigestItemKind.SEAL,
            DigestItemKind.PRE_RUNTIME,
        )
        if needs_engine and self.engine_id is None:
            raise ValueError(f"{self.kind.name} digest item requires an engine_id")
        if not needs_engine and self.engine_id is not None:
            raise ValueError(f"{self.kind.name} digest item has no engine_id")
        if self.kind == DigestItemKind.CHANGES_TRIE_ROOT and len(self.data) != 32:
            raise ValueError("CHANGES_TRIE_ROOT digest item must carry a 32-byte hash")
        return self


class Header(BaseModel):
    """
    Substrate block header h_s.

    Identity is not stored: hash() is the BLAKE2b-256 digest of the
    header's SCALE encoding, so a header can never claim a hash it does
    not have. Only parent_hash and number matter to ancestry checks; the
    roots and digest are carried so the hash matches the source chain.
    """

    parent_hash: Hash
    number: BlockNumber = Field(..., ge=0)
    state_root: Hash = Field(default=b"\x00" * 32)
    extrinsics_root: Hash = Field(default=b"\x00" * 32)
    digest: Tuple[DigestItem, ...] = ()

    class Config:
        frozen = True

    def hash(self) -> bytes:
        # grandpa.codec imports this module, so bind lazily
        from grandpa.codec import encode_header
        from helper.crypto import blake2_256

        return blake2_256(encode_header(self))

    def id(self) -> HeaderId:
        return self.hash(), self.number


# ======================================================================
# 2. Voters: the weighted authority set of one GRANDPA epoch
# ======================================================================

class VoterSet(BaseModel):
    """
    Weighted set of authorities entitled to vote.

    The supermajority threshold is the smallest weight strictly greater
    than two thirds of the total:

        faulty    = (total - 1) // 3
        threshold = total - faulty
    """

    weights: Dict[AuthorityId, int]

    class Config:
        frozen = True

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, v: Dict[bytes, int]) -> Dict[bytes, int]:
        if not v:
            raise ValueError("voter set must not be empty")
        for voter, weight in v.items():
            if weight <= 0:
                raise ValueError(f"voter 0x{voter.hex()} has non-positive weight {weight}")
        return v

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[bytes, int]]) -> "VoterSet":
        weights: Dict[bytes, int] = {}
        for voter, weight in pairs:
            if voter in weights:
                raise ValueError(f"duplicate voter 0x{voter.hex()}")
            weights[voter] = weight
        return cls(weights=weights)

    def contains(self, voter: bytes) -> bool:
        return voter in self.weights

    def weight(self, voter: bytes) -> int:
        return self.weights.get(voter, 0)

    @property
    def total_weight(self) -> int:
        return sum(self.weights.values())

    @property
    def threshold(self) -> int:
        total = self.total_weight
        return total - (total - 1) // 3

    def __len__(self) -> int:
        return len(self.weights)


class AuthoritySet(BaseModel):
    """
    Voter set plus the set id that scopes which epoch signed a proof.
    Read by the caller from destination-chain state, never from the proof.
    """

    set_id: SetId = Field(..., ge=0)
    voters: VoterSet

    class Config:
        frozen = True


# ======================================================================
# 3. Votes, commit and justification
# ======================================================================

class Precommit(BaseModel):
    """A single authority's claim that target (and its ancestors) may be finalized."""

    target_hash: Hash
    target_number: BlockNumber = Field(..., ge=0)

    class Config:
        frozen = True

    def target(self) -> HeaderId:
        return self.target_hash, self.target_number


class SignedPrecommit(BaseModel):
    precommit: Precommit
    signature: AuthoritySignature
    id: AuthorityId

    class Config:
        frozen = True


class Commit(BaseModel):
    """
    Claimed finalized target plus the ordered precommits supporting it.
    """

    target_hash: Hash
    target_number: BlockNumber = Field(..., ge=0)
    precommits: Tuple[SignedPrecommit, ...] = ()

    class Config:
        frozen = True

    def target(self) -> HeaderId:
        return self.target_hash, self.target_number


class GrandpaJustification(BaseModel):
    """
    GRANDPA justification of the bridged chain.

        round: voting round the commit was produced in
        commit: target + signed precommits
        votes_ancestries: every header needed to connect each precommit
            target back to the commit target, and no more
    """

    round: int = Field(..., ge=0, lt=1 << 64)
    commit: Commit
    votes_ancestries: Tuple[Header, ...] = ()

    class Config:
        frozen = True
