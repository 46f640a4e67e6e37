"""
End-to-end tests of verify_justification on the chain 0 <- 1 <- 2 <- 3 <- 4.

The honest justification finalizes block 1; alice, bob and charlie
precommit for blocks 2, 3 and 4 and votes_ancestries holds headers 2..4.
"""

import logging

import pytest

from grandpa.config import ChainConfig
from grandpa.enums import JustificationErrorKind
from grandpa.errors import (
    InvalidAuthoritySignature,
    InvalidJustificationCommit,
    InvalidJustificationTarget,
    InvalidPrecommitAncestries,
    InvalidPrecommitAncestryProof,
    JustificationDecodeError,
    NotDescendantError,
    UnreachableCapabilityError,
)
from grandpa.models import Header
from helper.crypto import Ed25519SignatureVerifier
from verifier.commit import CommitValidationResult, CommitValidator
from verifier.justification import check_justification, verify_justification


class AcceptingValidator(CommitValidator):
    """Reports the commit target as ghost without looking at the votes."""

    def validate(self, commit, voters, chain):
        return CommitValidationResult(ghost=commit.target(), num_precommits=len(commit.precommits))


class BestChainValidator(CommitValidator):
    """Misbehaving validator that asks for voting-only information."""

    def validate(self, commit, voters, chain):
        chain.best_chain_containing(commit.target_hash)
        return CommitValidationResult()


class BrokenAncestryValidator(CommitValidator):

    def validate(self, commit, voters, chain):
        raise NotDescendantError(commit.target_hash, b"\xff" * 32)


class RecordingVerifier(Ed25519SignatureVerifier):

    def __init__(self):
        self.calls = []

    def verify(self, public_key, signature, message):
        self.calls.append(public_key)
        return super().verify(public_key, signature, message)


class TestVerifyJustification:

    @pytest.fixture(autouse=True)
    def _setup(self, honest):
        self.setup = honest
        self.j = honest.justification
        self.voters = honest.authority_set.voters
        self.set_id = honest.authority_set.set_id

    def _encode(self, justification=None):
        return self.setup.builder.encode(justification or self.j)

    def _verify(self, raw, target=None, **kwargs):
        verify_justification(
            target or self.setup.target,
            self.set_id,
            self.voters,
            raw,
            **kwargs,
        )

    def test_valid_justification(self):
        assert verify_justification(self.setup.target, self.set_id, self.voters, self._encode()) is None

    def test_verification_is_repeatable(self):
        raw = self._encode()
        for _ in range(3):
            self._verify(raw)

    def test_wrong_target(self):
        with pytest.raises(InvalidJustificationTarget):
            self._verify(self._encode(), target=self.setup.chain.header_id(2))

    def test_target_number_must_match_too(self):
        target_hash, _ = self.setup.target
        with pytest.raises(InvalidJustificationTarget):
            self._verify(self._encode(), target=(target_hash, 2))

    def test_empty_precommits(self):
        empty = self.j.model_copy(
            update={"commit": self.j.commit.model_copy(update={"precommits": ()})}
        )
        with pytest.raises(InvalidJustificationCommit):
            self._verify(self._encode(empty))

    def test_zeroed_signature(self):
        precommits = list(self.j.commit.precommits)
        precommits[0] = precommits[0].model_copy(update={"signature": b"\x00" * 64})
        forged = self.j.model_copy(
            update={"commit": self.j.commit.model_copy(update={"precommits": tuple(precommits)})}
        )
        with pytest.raises(InvalidAuthoritySignature):
            self._verify(self._encode(forged))

    def test_extra_ancestry_header(self):
        padded = self.j.model_copy(
            update={"votes_ancestries": (*self.j.votes_ancestries, self.setup.chain.header(10))}
        )
        with pytest.raises(InvalidPrecommitAncestries):
            self._verify(self._encode(padded))

    def test_missing_ancestry_header(self):
        trimmed = self.j.model_copy(update={"votes_ancestries": self.j.votes_ancestries[:-1]})
        with pytest.raises(InvalidJustificationCommit):
            self._verify(self._encode(trimmed))

    def test_missing_ancestry_header_with_permissive_validator(self):
        trimmed = self.j.model_copy(update={"votes_ancestries": self.j.votes_ancestries[:-1]})
        with pytest.raises(InvalidPrecommitAncestryProof):
            self._verify(self._encode(trimmed), commit_validator=AcceptingValidator())

    def test_duplicate_ancestry_header_is_tolerated(self):
        repeated = self.j.model_copy(
            update={"votes_ancestries": (*self.j.votes_ancestries, self.j.votes_ancestries[0])}
        )
        self._verify(self._encode(repeated))

    def test_header_number_wider_than_block_number(self):
        oversized = Header(parent_hash=self.setup.chain.header(4).hash(), number=1 << 64)
        padded = self.j.model_copy(
            update={"votes_ancestries": (*self.j.votes_ancestries, oversized)}
        )
        with pytest.raises(JustificationDecodeError):
            self._verify(self._encode(padded))

    def test_equivocating_voter_still_counts(self):
        votes = [
            ("alice", self.setup.chain.header_id(2)),
            ("alice", self.setup.chain.header_id(3)),
            ("alice", self.setup.chain.header_id(4)),
            ("bob", self.setup.chain.header_id(4)),
            ("charlie", self.setup.chain.header_id(4)),
        ]
        justification = self.setup.builder.build(self.setup.target, votes, self.setup.ancestries)
        self._verify(self._encode(justification))

    def test_wrong_set_id(self):
        with pytest.raises(InvalidAuthoritySignature):
            verify_justification(self.setup.target, self.set_id + 1, self.voters, self._encode())

    def test_unknown_voter_set(self):
        alice_only = self.setup.keyring.voter_set(["alice"])
        self.setup.keyring.add("dave")
        dave_only = self.setup.keyring.voter_set(["dave"])
        with pytest.raises(InvalidJustificationCommit):
            verify_justification(self.setup.target, self.set_id, dave_only, self._encode())
        # alice alone holds the full weight, so her vote decides
        verify_justification(self.setup.target, self.set_id, alice_only, self._encode())

    def test_decode_failures(self):
        raw = self._encode()
        for mangled in (b"", raw[:-1], raw + b"\x00"):
            with pytest.raises(JustificationDecodeError):
                self._verify(mangled)

    def test_signatures_checked_in_order_and_stop_at_first_failure(self):
        precommits = list(self.j.commit.precommits)
        precommits[1] = precommits[1].model_copy(update={"signature": b"\x00" * 64})
        forged = self.j.model_copy(
            update={"commit": self.j.commit.model_copy(update={"precommits": tuple(precommits)})}
        )
        verifier = RecordingVerifier()
        with pytest.raises(InvalidAuthoritySignature):
            self._verify(self._encode(forged), signature_verifier=verifier)
        assert verifier.calls == [precommits[0].id, precommits[1].id]

    def test_commit_checked_before_signatures(self):
        verifier = RecordingVerifier()
        empty = self.j.model_copy(
            update={"commit": self.j.commit.model_copy(update={"precommits": ()})}
        )
        with pytest.raises(InvalidJustificationCommit):
            self._verify(self._encode(empty), signature_verifier=verifier)
        assert verifier.calls == []

    def test_validator_ancestry_failure_is_a_commit_error(self):
        with pytest.raises(InvalidJustificationCommit):
            self._verify(self._encode(), commit_validator=BrokenAncestryValidator())

    def test_unreachable_capability_propagates(self):
        with pytest.raises(UnreachableCapabilityError):
            self._verify(self._encode(), commit_validator=BestChainValidator())

    def test_u32_chain(self):
        config = ChainConfig(block_number_bytes=4)
        self.setup.builder.config = config
        justification = self.setup.builder.build(self.setup.target, self.setup.votes, self.setup.ancestries)
        self._verify(self.setup.builder.encode(justification), config=config)


class TestCheckJustification:

    def test_returns_none_on_success(self, honest):
        raw = honest.builder.encode(honest.justification)
        assert check_justification(
            honest.target, honest.authority_set.set_id, honest.authority_set.voters, raw
        ) is None

    def test_returns_error_and_logs(self, honest, caplog):
        caplog.set_level(logging.DEBUG, logger="verifier.justification")
        error = check_justification(
            honest.target, honest.authority_set.set_id, honest.authority_set.voters, b""
        )
        assert error == JustificationDecodeError()
        assert error.kind == JustificationErrorKind.DECODE
        assert "justification rejected" in caplog.text
