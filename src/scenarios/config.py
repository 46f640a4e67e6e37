# src/scenarios/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from grandpa.codec import encode_justification
from grandpa.config import ChainConfig, DEFAULT_CHAIN_CONFIG
from grandpa.enums import GrandpaMessageKind
from grandpa.models import (
    AuthoritySet,
    Commit,
    GrandpaJustification,
    Header,
    HeaderId,
    Precommit,
    SignedPrecommit,
    VoterSet,
)
from helper.crypto import blake2_256, localized_payload

GENESIS_PARENT = b"\x00" * 32


@dataclass
class SimulationChain:
    """
    Minimal in-memory source chain used by scenarios and tests.

    This is *not* a consensus model. It only produces headers whose
    hashes chain correctly:

        header(0).parent_hash = 0x00..00
        header(n).parent_hash = header(n - 1).hash()

    Forks are built on top of any canonical header by varying the state
    root, so fork headers get distinct hashes at the same height.
    """
    chain_id: str = "chain-S"
    _headers: Dict[int, Header] = field(default_factory=dict)

    def header(self, number: int) -> Header:
        """Canonical header at `number`, created on demand."""
        cached = self._headers.get(number)
        if cached is not None:
            return cached

        parent_hash = GENESIS_PARENT if number == 0 else self.header(number - 1).hash()
        h = Header(parent_hash=parent_hash, number=number)
        self._headers[number] = h
        return h

    def header_id(self, number: int) -> HeaderId:
        return self.header(number).id()

    def headers(self, numbers: Iterable[int]) -> List[Header]:
        return [self.header(n) for n in numbers]

    def fork(self, parent_number: int, length: int, salt: bytes = b"fork") -> List[Header]:
        """
        Build `length` fork headers on top of canonical header
        `parent_number`. The first fork header differs from the
        canonical child through its state root.
        """
        fork: List[Header] = []
        parent_hash = self.header(parent_number).hash()
        for offset in range(1, length + 1):
            h = Header(
                parent_hash=parent_hash,
                number=parent_number + offset,
                state_root=blake2_256(salt + offset.to_bytes(4, "little")),
            )
            fork.append(h)
            parent_hash = h.hash()
        return fork


class Keyring:
    """
    Deterministic Ed25519 test authorities.

    The secret of a named authority is BLAKE2b-256(name), so "alice"
    always maps to the same key pair across runs.
    """

    def __init__(self, names: Sequence[str] = ("alice", "bob", "charlie")) -> None:
        self._keys: Dict[str, Ed25519PrivateKey] = {}
        for name in names:
            self.add(name)

    def add(self, name: str) -> bytes:
        key = Ed25519PrivateKey.from_private_bytes(blake2_256(name.encode("utf-8")))
        self._keys[name] = key
        return self.public(name)

    @property
    def names(self) -> List[str]:
        return list(self._keys)

    def public(self, name: str) -> bytes:
        return self._keys[name].public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def sign(self, name: str, message: bytes) -> bytes:
        return self._keys[name].sign(message)

    def voter_set(self, names: Optional[Iterable[str]] = None, weight: int = 1) -> VoterSet:
        chosen = self.names if names is None else list(names)
        return VoterSet.from_pairs((self.public(n), weight) for n in chosen)

    def authority_set(self, set_id: int, names: Optional[Iterable[str]] = None) -> AuthoritySet:
        return AuthoritySet(set_id=set_id, voters=self.voter_set(names))


@dataclass
class JustificationBuilder:
    """
    Produces justifications signed exactly the way GRANDPA voters sign:
    each precommit is signed over localized_payload(round, set_id, ...).
    """
    keyring: Keyring
    round: int = 1
    set_id: int = 1
    config: ChainConfig = DEFAULT_CHAIN_CONFIG

    def signed_precommit(self, signer: str, target: HeaderId) -> SignedPrecommit:
        precommit = Precommit(target_hash=target[0], target_number=target[1])
        payload = localized_payload(
            self.round,
            self.set_id,
            GrandpaMessageKind.PRECOMMIT,
            precommit,
            self.config,
        )
        return SignedPrecommit(
            precommit=precommit,
            signature=self.keyring.sign(signer, payload),
            id=self.keyring.public(signer),
        )

    def build(
        self,
        target: HeaderId,
        votes: Sequence[Tuple[str, HeaderId]],
        ancestries: Sequence[Header],
    ) -> GrandpaJustification:
        return GrandpaJustification(
            round=self.round,
            commit=Commit(
                target_hash=target[0],
                target_number=target[1],
                precommits=tuple(self.signed_precommit(s, t) for s, t in votes),
            ),
            votes_ancestries=tuple(ancestries),
        )

    def encode(self, justification: GrandpaJustification) -> bytes:
        return encode_justification(justification, self.config)
