# src/helper/crypto.py
from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from grandpa.codec import encode_vote_message
from grandpa.config import ChainConfig, DEFAULT_CHAIN_CONFIG
from grandpa.enums import GrandpaMessageKind
from grandpa.models import Precommit, SetId
from helper.codec import encode_uint


def blake2_256(data: bytes) -> bytes:
    """BLAKE2b with a 32-byte digest, the Substrate block hasher."""
    return hashlib.blake2b(data, digest_size=32).digest()


def localized_payload(
    round_number: int,
    set_id: SetId,
    kind: GrandpaMessageKind,
    precommit: Precommit,
    config: ChainConfig = DEFAULT_CHAIN_CONFIG,
) -> bytes:
    """
    Exact bytes an authority signs for a vote:

        SCALE((message, round: u64, set_id: u64))

    Binding the round and set id into the payload stops a vote from one
    round or authority epoch being replayed in another.
    """
    return (
        encode_vote_message(kind, precommit, config)
        + encode_uint(round_number, 8)
        + encode_uint(set_id, 8)
    )


class SignatureVerifier(ABC):
    """
    Abstract interface for checking one authority's signature over one
    vote message.

    The verifier returns a plain accept/reject bit; the justification
    verifier turns a rejection into InvalidAuthoritySignature.
    """

    @abstractmethod
    def verify(self, public_key: bytes, signature: bytes, message: bytes) -> bool:
        """Return True iff `signature` is valid for `message` under `public_key`."""
        raise NotImplementedError

    def check_message_signature(
        self,
        precommit: Precommit,
        authority_id: bytes,
        signature: bytes,
        round_number: int,
        set_id: SetId,
        config: ChainConfig = DEFAULT_CHAIN_CONFIG,
    ) -> bool:
        """
        Rebuild the localized precommit payload and verify the signature
        against the declared authority id.
        """
        payload = localized_payload(
            round_number,
            set_id,
            GrandpaMessageKind.PRECOMMIT,
            precommit,
            config,
        )
        return self.verify(authority_id, signature, payload)


class Ed25519SignatureVerifier(SignatureVerifier):
    """
    GRANDPA authority ids are Ed25519 public keys (32 bytes) and
    signatures are 64-byte Ed25519 signatures.

    Malformed keys (e.g. not a valid curve point) are treated as a failed
    verification rather than an error, so a forged authority id is
    reported the same way as a forged signature.
    """

    def verify(self, public_key: bytes, signature: bytes, message: bytes) -> bool:
        try:
            key = Ed25519PublicKey.from_public_bytes(public_key)
        except ValueError:
            return False

        try:
            key.verify(signature, message)
        except InvalidSignature:
            return False
        return True
