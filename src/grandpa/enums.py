# src/grandpa/enums.py
from __future__ import annotations

from enum import Enum, IntEnum


class VerificationFamily(str, Enum):
    """
    Finality families a bridge can consume. Only GRANDPA justifications
    are verified by this package; the enum keeps the evidence objects
    self-describing.
    """
    GRANDPA = "grandpa"


class PredicateName(str, Enum):
    """
    Canonical names of the finality predicates.

      HdrRef(e)  -- the evidence references a source header h_s
      Final(h_s) -- a GRANDPA justification proves h_s is finalized
    """

    HDR_REF = "HdrRef"
    FINAL = "Final"


class JustificationErrorKind(str, Enum):
    """
    Verdict kinds of a rejected justification.

    Every kind is terminal for a single verification call.
    """

    DECODE = "justification_decode"
    INVALID_TARGET = "invalid_justification_target"
    INVALID_COMMIT = "invalid_justification_commit"
    INVALID_SIGNATURE = "invalid_authority_signature"
    INVALID_ANCESTRY_PROOF = "invalid_precommit_ancestry_proof"
    INVALID_ANCESTRIES = "invalid_precommit_ancestries"


class GrandpaMessageKind(IntEnum):
    """SCALE variant index of a GRANDPA vote message."""

    PREVOTE = 0
    PRECOMMIT = 1
    PRIMARY_PROPOSE = 2


class DigestItemKind(IntEnum):
    """SCALE variant index of a header digest item."""

    OTHER = 0
    CHANGES_TRIE_ROOT = 2
    CONSENSUS = 4
    SEAL = 5
    PRE_RUNTIME = 6
    CHANGES_TRIE_SIGNAL = 7
