# src/scenarios/threats_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Tuple

from grandpa.enums import JustificationErrorKind, VerificationFamily
from grandpa.evidence import GrandpaFinalityEvidence
from grandpa.models import AuthoritySet
from scenarios.config import SimulationChain


class ThreatId(str, Enum):
    """
    Forged-finality threats against a GRANDPA light client.

      - F1_WRONG_TARGET
          A valid justification for one block is presented as proof for
          another block.

      - F2_NO_SUPERMAJORITY
          The commit lacks votes from more than two thirds of the voter
          weight (votes dropped, or no votes at all).

      - F3_FORGED_SIGNATURE
          One precommit carries a signature its authority never produced.

      - F4_FOREIGN_VOTERS
          Validly signed precommits from keys outside the voter set.

      - F5_ANCESTRY_PADDING
          Extra headers unrelated to any vote are appended to the
          ancestry list.

      - F6_ANCESTRY_OMISSION
          A header needed to connect a vote to the target is removed.

      - F7_STALE_AUTHORITY_SET
          Votes signed by the same keys under a previous set id are
          replayed against the current set.

      - F8_ROUND_REPLAY
          The round number of a valid justification is rewritten.

      - F9_MALFORMED_PROOF
          The proof bytes are truncated or padded.
    """

    F1_WRONG_TARGET = "F1_wrong_target"
    F2_NO_SUPERMAJORITY = "F2_no_supermajority"
    F3_FORGED_SIGNATURE = "F3_forged_signature"
    F4_FOREIGN_VOTERS = "F4_foreign_voters"
    F5_ANCESTRY_PADDING = "F5_ancestry_padding"
    F6_ANCESTRY_OMISSION = "F6_ancestry_omission"
    F7_STALE_AUTHORITY_SET = "F7_stale_authority_set"
    F8_ROUND_REPLAY = "F8_round_replay"
    F9_MALFORMED_PROOF = "F9_malformed_proof"


class Label(str, Enum):
    """
    Ground-truth label of a sample.

      - SAFE:   honest proof, must be authorized
      - ATTACK: forged proof, must be rejected
    """

    SAFE = "safe"      # should be accepted
    ATTACK = "attack"  # should be rejected


Sample = Tuple[GrandpaFinalityEvidence, AuthoritySet, Label]


class ThreatScenario(ABC):
    """
    Abstract base class of forged-finality scenarios.

    A scenario answers: "what (evidence, authority set) pairs does the
    destination see under an honest relay vs. an attacker mounting this
    threat?" The threat semantics live here; the predicates only see the
    resulting pairs.

    Subclasses set `threat_id`, `description` and `expected_error`, the
    verdict kind an ATTACK sample must be rejected with.
    """

    threat_id: ThreatId
    family: VerificationFamily = VerificationFamily.GRANDPA
    description: str = ""
    expected_error: Optional[JustificationErrorKind] = None

    @abstractmethod
    def generate_trace(
        self,
        chain: SimulationChain,
        kappa: dict | None = None,
        seed: int | None = None,
    ) -> List[Sample]:
        """
        Generate one trace of labelled samples.

        Parameters:
          - chain: source chain the headers are taken from.
          - kappa: optional knobs overriding the honest setup (voter
                   names, target number, set id, round).
          - seed:  optional RNG seed for scenarios that sample
                   adversarial choices.
        """
        raise NotImplementedError
