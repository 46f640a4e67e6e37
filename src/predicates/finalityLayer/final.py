# src/predicates/finalityLayer/final.py
from __future__ import annotations

from typing import Optional

from grandpa.enums import PredicateName
from grandpa.models import Header
from helper.crypto import SignatureVerifier
from predicates.base import Predicate, PredicateLayer, PredicateContext, PredicateResult
from verifier.commit import CommitValidator
from verifier.justification import check_justification


class FinalPredicate(Predicate):
    """
    Final(h_s): the header carried by the evidence is finalized under the
    source chain's GRANDPA consensus.

    The predicate is the caller-side wrapper around check_justification:

      1) HdrRef(e) must exist; its (hash, number) is the expected target;
      2) the destination must know the current authority set;
      3) the raw proof must not exceed config.max_justification_size,
         since the verifier itself does no size-based defense;
      4) the justification must verify against (target, set_id, voters).

    Failures are reported with metadata["error"] set to the
    JustificationErrorKind value, or to a predicate-level reason
    ("missing_header", "unknown_authority_set", "justification_too_large").

    Optional ctx.params:
      * "commit_validator":   CommitValidator replacing the GHOST default
      * "signature_verifier": SignatureVerifier replacing Ed25519
    """

    name = PredicateName.FINAL
    layer = PredicateLayer.FINALITY
    description = "Header-level finality proven by a GRANDPA justification."

    def _fail(self, reason: str, error: str, **metadata) -> PredicateResult:
        return PredicateResult(
            name=self.name,
            ok=False,
            reason=reason,
            metadata={"error": error, **metadata},
        )

    def evaluate(self, ctx: PredicateContext) -> PredicateResult:
        e = ctx.e
        header: Optional[Header] = e.hdr_ref()
        if header is None:
            return self._fail("Final: HdrRef(e) = ⊥, nothing to finalize.", "missing_header")

        if ctx.authority_set is None:
            return self._fail(
                "Final: no authority set known for the source chain.",
                "unknown_authority_set",
            )

        size = len(e.justification)
        limit = ctx.config.max_justification_size
        if limit is not None and size > limit:
            return self._fail(
                f"Final: justification of {size} bytes exceeds limit {limit}.",
                "justification_too_large",
                size=size,
            )

        commit_validator: Optional[CommitValidator] = ctx.params.get("commit_validator")
        signature_verifier: Optional[SignatureVerifier] = ctx.params.get("signature_verifier")

        target_hash, target_number = header.id()
        error = check_justification(
            (target_hash, target_number),
            ctx.authority_set.set_id,
            ctx.authority_set.voters,
            e.justification,
            config=ctx.config,
            commit_validator=commit_validator,
            signature_verifier=signature_verifier,
        )

        metadata = {
            "chain_id": e.chain_id,
            "number": target_number,
            "hash": "0x" + target_hash.hex(),
            "set_id": ctx.authority_set.set_id,
        }
        if error is not None:
            return self._fail(f"Final: {error}", error.kind.value, **metadata)

        return PredicateResult(name=self.name, ok=True, metadata=metadata)
