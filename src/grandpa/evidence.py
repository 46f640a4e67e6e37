# src/grandpa/evidence.py
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from grandpa.enums import VerificationFamily
from grandpa.models import Header

JsonDict = Dict[str, Any]


class Evidence(BaseModel):
    """
    Abstract evidence e handed to the destination-side authorizer.

    Evidence is whatever the relay fetched from the source chain to argue
    that a header h_s may be imported. It is untrusted: predicates decide
    whether it actually proves anything.

    Two requirements are common to all evidence:
      (1) it belongs to exactly one verification family;
      (2) it may expose a source header through HdrRef(e).
    """

    family: VerificationFamily = Field(
        ...,
        description="Verification family this evidence belongs to.",
    )

    meta: JsonDict = Field(
        default_factory=dict,
        description="Relay-side annotations (not semantics-critical).",
    )

    class Config:
        frozen = True

    def hdr_ref(self) -> Optional[Header]:
        """HdrRef(e): the source header h_s this evidence refers to, if any."""
        return None


class GrandpaFinalityEvidence(Evidence):
    """
    A header h_s of the source chain plus the GRANDPA justification that
    claims to finalize it.

    The justification is kept as raw bytes exactly as fetched; decoding
    is part of verification, so a malformed proof is a verdict and not a
    construction error.
    """

    family: Literal[VerificationFamily.GRANDPA] = VerificationFamily.GRANDPA

    chain_id: str = Field(
        ...,
        description="Identifier of the source chain the header belongs to.",
    )

    header: Optional[Header] = Field(
        default=None,
        description="Header h_s claimed to be finalized.",
    )

    justification: bytes = Field(
        default=b"",
        description="SCALE-encoded GRANDPA justification for h_s.",
    )

    def hdr_ref(self) -> Optional[Header]:
        return self.header
