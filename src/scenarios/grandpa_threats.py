"""
Forged-finality scenarios for GRANDPA justifications.

Every scenario starts from the same honest setup:

    chain:   0 ← 1 ← 2 ← 3 ← 4 ← ...
    target:  block 1 (kappa["target"])
    voters:  alice, bob, charlie with weight 1 each (kappa["voters"])
    votes:   the i-th voter precommits for block target + 1 + i
    proof:   votes_ancestries = headers target+1 .. target+len(voters)

The honest proof is always the first sample (SAFE); the attacker then
derives one or more ATTACK samples from it. Each scenario documents the
verdict an attack must be rejected with (expected_error).
"""
from __future__ import annotations

import random
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from grandpa.enums import JustificationErrorKind
from grandpa.evidence import GrandpaFinalityEvidence
from grandpa.models import AuthoritySet, GrandpaJustification, Header, HeaderId
from scenarios.config import JustificationBuilder, Keyring, SimulationChain
from scenarios.threats_base import Label, Sample, ThreatId, ThreatScenario


DEFAULT_KAPPA: Dict[str, Any] = {
    "voters": ["alice", "bob", "charlie"],
    "target": 1,
    "set_id": 1,
    "round": 1,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@dataclass
class HonestSetup:
    chain: SimulationChain
    keyring: Keyring
    builder: JustificationBuilder
    authority_set: AuthoritySet
    target: HeaderId
    votes: List[Tuple[str, HeaderId]]
    ancestries: List[Header]
    justification: GrandpaJustification

    @property
    def target_header(self) -> Header:
        return self.chain.header(self.target[1])

    def evidence(self, raw: bytes, header: Header | None = None, **meta: Any) -> GrandpaFinalityEvidence:
        return GrandpaFinalityEvidence(
            chain_id=self.chain.chain_id,
            header=header or self.target_header,
            justification=raw,
            meta=meta,
        )


def make_honest_setup(chain: SimulationChain, kappa: Dict[str, Any] | None = None) -> HonestSetup:
    knobs = {**DEFAULT_KAPPA, **(kappa or {})}
    voters: List[str] = list(knobs["voters"])
    target_number: int = knobs["target"]

    keyring = Keyring(voters)
    builder = JustificationBuilder(keyring=keyring, round=knobs["round"], set_id=knobs["set_id"])
    target = chain.header_id(target_number)
    votes = [
        (name, chain.header_id(target_number + 1 + i))
        for i, name in enumerate(voters)
    ]
    ancestries = chain.headers(range(target_number + 1, target_number + 1 + len(voters)))

    return HonestSetup(
        chain=chain,
        keyring=keyring,
        builder=builder,
        authority_set=keyring.authority_set(knobs["set_id"], voters),
        target=target,
        votes=votes,
        ancestries=ancestries,
        justification=builder.build(target, votes, ancestries),
    )


class _FromHonestProofScenario(ThreatScenario):
    """
    Template: one SAFE honest sample followed by the attack samples the
    subclass derives from the same setup.
    """

    def generate_trace(
        self,
        chain: SimulationChain,
        kappa: Dict[str, Any] | None = None,
        seed: int | None = None,
    ) -> List[Sample]:
        setup = make_honest_setup(chain, kappa)
        honest = setup.evidence(setup.builder.encode(setup.justification), threat=self.threat_id.value)
        trace: List[Sample] = [(honest, setup.authority_set, Label.SAFE)]
        for e in self.attacks(setup, random.Random(seed)):
            trace.append((e, setup.authority_set, Label.ATTACK))
        return trace

    @abstractmethod
    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        raise NotImplementedError


def _with_precommits(j: GrandpaJustification, precommits) -> GrandpaJustification:
    return j.model_copy(update={"commit": j.commit.model_copy(update={"precommits": tuple(precommits)})})


def _with_ancestries(j: GrandpaJustification, ancestries) -> GrandpaJustification:
    return j.model_copy(update={"votes_ancestries": tuple(ancestries)})


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class WrongTargetScenario(_FromHonestProofScenario):
    description = """
    F1_WRONG_TARGET: a valid justification for block N is attached to the
    header of block N+1. Target matching rejects it before any signature
    is checked.
    """
    threat_id = ThreatId.F1_WRONG_TARGET
    expected_error = JustificationErrorKind.INVALID_TARGET

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        raw = setup.builder.encode(setup.justification)
        other = setup.chain.header(setup.target[1] + 1)
        return [setup.evidence(raw, header=other, threat=self.threat_id.value)]


class NoSupermajorityScenario(_FromHonestProofScenario):
    description = """
    F2_NO_SUPERMAJORITY: the commit keeps only some of the votes (here:
    the last voter is dropped together with its ancestry), or none at
    all. Without more than two thirds of the weight there is no ghost.
    """
    threat_id = ThreatId.F2_NO_SUPERMAJORITY
    expected_error = JustificationErrorKind.INVALID_COMMIT

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        j = setup.justification
        partial = _with_ancestries(
            _with_precommits(j, j.commit.precommits[:-1]),
            j.votes_ancestries[:-1],
        )
        empty = _with_ancestries(_with_precommits(j, ()), ())
        return [
            setup.evidence(setup.builder.encode(partial), threat=self.threat_id.value),
            setup.evidence(setup.builder.encode(empty), threat=self.threat_id.value),
        ]


class ForgedSignatureScenario(_FromHonestProofScenario):
    description = """
    F3_FORGED_SIGNATURE: one precommit (chosen by the seed) has its
    signature zeroed. Weight and ancestry would still be acceptable.
    """
    threat_id = ThreatId.F3_FORGED_SIGNATURE
    expected_error = JustificationErrorKind.INVALID_SIGNATURE

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        j = setup.justification
        precommits = list(j.commit.precommits)
        victim = rng.randrange(len(precommits))
        precommits[victim] = precommits[victim].model_copy(update={"signature": b"\x00" * 64})
        forged = _with_precommits(j, precommits)
        return [setup.evidence(setup.builder.encode(forged), threat=self.threat_id.value)]


class ForeignVotersScenario(_FromHonestProofScenario):
    description = """
    F4_FOREIGN_VOTERS: the attacker controls keys that are not in the
    voter set and signs a full commit with them. Signatures are valid,
    but none of the weight counts.
    """
    threat_id = ThreatId.F4_FOREIGN_VOTERS
    expected_error = JustificationErrorKind.INVALID_COMMIT

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        foreign = [f"mallory-{i}" for i in range(len(setup.votes))]
        for name in foreign:
            setup.keyring.add(name)
        votes = [(name, target) for name, (_, target) in zip(foreign, setup.votes)]
        forged = setup.builder.build(setup.target, votes, setup.ancestries)
        return [setup.evidence(setup.builder.encode(forged), threat=self.threat_id.value)]


class AncestryPaddingScenario(_FromHonestProofScenario):
    description = """
    F5_ANCESTRY_PADDING: headers that no vote needs are appended to
    votes_ancestries: a far canonical header and a fork header.
    """
    threat_id = ThreatId.F5_ANCESTRY_PADDING
    expected_error = JustificationErrorKind.INVALID_ANCESTRIES

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        j = setup.justification
        far = setup.chain.header(setup.target[1] + 9)
        fork = setup.chain.fork(setup.target[1], 1)[0]
        return [
            setup.evidence(
                setup.builder.encode(_with_ancestries(j, [*j.votes_ancestries, extra])),
                threat=self.threat_id.value,
            )
            for extra in (far, fork)
        ]


class AncestryOmissionScenario(_FromHonestProofScenario):
    description = """
    F6_ANCESTRY_OMISSION: one ancestry header (chosen by the seed) is
    removed. The vote that depends on it can no longer be traced to the
    target, so commit validation finds no ghost.
    """
    threat_id = ThreatId.F6_ANCESTRY_OMISSION
    expected_error = JustificationErrorKind.INVALID_COMMIT

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        j = setup.justification
        ancestries = list(j.votes_ancestries)
        del ancestries[rng.randrange(len(ancestries))]
        forged = _with_ancestries(j, ancestries)
        return [setup.evidence(setup.builder.encode(forged), threat=self.threat_id.value)]


class StaleAuthoritySetScenario(_FromHonestProofScenario):
    description = """
    F7_STALE_AUTHORITY_SET: the same authorities signed the same votes
    under the previous set id. The set id is part of the signed payload,
    so the signatures do not verify for the current set.
    """
    threat_id = ThreatId.F7_STALE_AUTHORITY_SET
    expected_error = JustificationErrorKind.INVALID_SIGNATURE

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        stale = JustificationBuilder(
            keyring=setup.keyring,
            round=setup.builder.round,
            set_id=setup.builder.set_id + 1 if setup.builder.set_id == 0 else setup.builder.set_id - 1,
            config=setup.builder.config,
        )
        forged = stale.build(setup.target, setup.votes, setup.ancestries)
        return [setup.evidence(stale.encode(forged), threat=self.threat_id.value)]


class RoundReplayScenario(_FromHonestProofScenario):
    description = """
    F8_ROUND_REPLAY: the round field of a valid justification is
    rewritten while the signatures are kept.
    """
    threat_id = ThreatId.F8_ROUND_REPLAY
    expected_error = JustificationErrorKind.INVALID_SIGNATURE

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        j = setup.justification
        replayed = j.model_copy(update={"round": j.round + 1})
        return [setup.evidence(setup.builder.encode(replayed), threat=self.threat_id.value)]


class MalformedProofScenario(_FromHonestProofScenario):
    description = """
    F9_MALFORMED_PROOF: the proof bytes are empty, truncated by one byte,
    or followed by a trailing byte.
    """
    threat_id = ThreatId.F9_MALFORMED_PROOF
    expected_error = JustificationErrorKind.DECODE

    def attacks(self, setup: HonestSetup, rng: random.Random) -> List[GrandpaFinalityEvidence]:
        raw = setup.builder.encode(setup.justification)
        return [
            setup.evidence(mangled, threat=self.threat_id.value)
            for mangled in (b"", raw[:-1], raw + b"\x00")
        ]


SCENARIOS_GRANDPA: Dict[ThreatId, ThreatScenario] = {
    sc.threat_id: sc
    for sc in (
        WrongTargetScenario(),
        NoSupermajorityScenario(),
        ForgedSignatureScenario(),
        ForeignVotersScenario(),
        AncestryPaddingScenario(),
        AncestryOmissionScenario(),
        StaleAuthoritySetScenario(),
        RoundReplayScenario(),
        MalformedProofScenario(),
    )
}
