# src/grandpa/errors.py
from __future__ import annotations

from grandpa.enums import JustificationErrorKind


# ======================================================================
# 1. Verdict errors -- returned to the relay as the reason of a rejection
# ======================================================================

class JustificationError(Exception):
    """
    Base class of every justification verdict error.

    Each subclass carries a `kind` so that callers that prefer a value
    over an exception (predicates, scenario runners) can report the
    reason without matching on classes.
    """

    kind: JustificationErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JustificationError):
            return NotImplemented
        return self.kind == other.kind

    def __hash__(self) -> int:
        return hash(self.kind)


class JustificationDecodeError(JustificationError):
    """Failed to decode the justification bytes."""
    kind = JustificationErrorKind.DECODE


class InvalidJustificationTarget(JustificationError):
    """Justification is finalizing an unexpected header."""
    kind = JustificationErrorKind.INVALID_TARGET


class InvalidJustificationCommit(JustificationError):
    """The commit has no supermajority-backed candidate."""
    kind = JustificationErrorKind.INVALID_COMMIT


class InvalidAuthoritySignature(JustificationError):
    """A precommit signature does not verify."""
    kind = JustificationErrorKind.INVALID_SIGNATURE


class InvalidPrecommitAncestryProof(JustificationError):
    """A precommit target has no route back to the commit target."""
    kind = JustificationErrorKind.INVALID_ANCESTRY_PROOF


class InvalidPrecommitAncestries(JustificationError):
    """The ancestry headers are not exactly the ones the precommits need."""
    kind = JustificationErrorKind.INVALID_ANCESTRIES


# ======================================================================
# 2. Internal errors -- never leave the verifier as a verdict
# ======================================================================

class CodecError(ValueError):
    """Malformed, truncated or non-canonical SCALE input."""


class AncestryError(Exception):
    """Base class of ancestry oracle failures."""


class NotDescendantError(AncestryError):
    """`block` is not a descendant of `base` given the known headers."""

    def __init__(self, base: bytes, block: bytes) -> None:
        super().__init__(
            f"block 0x{block.hex()} is not a descendant of 0x{base.hex()}"
        )
        self.base = base
        self.block = block


class UnreachableCapabilityError(RuntimeError):
    """
    Raised when code calls a capability that must never be reached while
    verifying (e.g. best-chain lookup, which is only used during voting).

    This signals a bug in the surrounding code, not a property of the
    input, so the verifier lets it propagate.
    """
