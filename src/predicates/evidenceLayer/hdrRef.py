from grandpa.enums import PredicateName
from predicates.base import PredicateResult, PredicateContext, PredicateLayer, Predicate


class HdrRefPredicate(Predicate):
    """
    HdrRef(e) != ⊥, and e is about the chain being imported from.

    Only the shape of the evidence is checked here. Whether the header is
    actually final, and anything inside the justification bytes, is left
    to FinalPredicate.
    """
    name = PredicateName.HDR_REF
    layer = PredicateLayer.EVIDENCE
    description = "HdrRef(e) must yield a header h_s of the expected source chain."

    def evaluate(self, ctx: PredicateContext) -> PredicateResult:
        header = ctx.e.hdr_ref()
        if header is None:
            return PredicateResult(
                name=self.name,
                ok=False,
                reason="HdrRef: evidence carries no header.",
            )

        chain_id = getattr(ctx.e, "chain_id", None)
        if ctx.source_chain is not None and chain_id != ctx.source_chain:
            return PredicateResult(
                name=self.name,
                ok=False,
                reason=f"HdrRef: evidence is for {chain_id}, importing from {ctx.source_chain}.",
            )

        return PredicateResult(
            name=self.name,
            ok=True,
            metadata={
                "chain_id": chain_id,
                "number": header.number,
                "hash": "0x" + header.hash().hex(),
            },
        )
