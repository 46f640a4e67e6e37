from __future__ import annotations

import logging
from typing import List, Optional, Dict, Any

from pydantic import BaseModel

from grandpa.config import ChainConfig, DEFAULT_CHAIN_CONFIG
from grandpa.enums import PredicateName
from grandpa.evidence import Evidence
from grandpa.models import AuthoritySet
from predicates.base import PredicateContext, PredicateResult
from predicates.registry import get_pipeline_for_family

logger = logging.getLogger(__name__)


class AuthorizationResult(BaseModel):
    """
    Result of a single finality authorization attempt.

    Fields
    ------
    authorized : bool
        True iff every predicate of the pipeline returned ok=True and no
        predicate raised.

    violated_predicates : List[PredicateName]
        Names of predicates that returned ok=False.

    predicate_results : List[PredicateResult]
        Per-predicate diagnostics in execution order.

    error : Optional[str]
        Set when a predicate raised instead of returning a result. This
        marks a bug or contract violation in the surrounding code, not a
        property of the evidence; the evidence is rejected either way.
    """
    authorized: bool
    violated_predicates: List[PredicateName]
    predicate_results: List[PredicateResult]
    error: Optional[str] = None


class FinalityAuthorizer:
    """
    Destination-side gate between the header relay and the bridge.

    The relay hands over each candidate (evidence, authority set) pair;
    the authorizer runs the predicate pipeline and returns a verdict.
    It holds no state, so one instance can be shared by any number of
    relay workers. Retry and re-fetch policy stays with the relay: a
    rejected proof is never evidence of finality, but a fresh proof for
    the same header may be submitted later.

        authorize(e, σ) := ∧_{P ∈ pipeline(family)} P(e, σ)
    """

    def authorize(
        self,
        e: Evidence,
        authority_set: Optional[AuthoritySet],
        *,
        source_chain: Optional[str] = None,
        config: ChainConfig = DEFAULT_CHAIN_CONFIG,
        params: Optional[Dict[str, Any]] = None,
    ) -> AuthorizationResult:
        """
        Execute the predicate pipeline for `e` and return the verdict.

        Parameters
        ----------
        e : Evidence
            Untrusted evidence fetched by the relay.
        authority_set : AuthoritySet or None
            Current authority set of the source chain, from destination state.
        source_chain : str, optional
            When set, the evidence must be about this chain.
        config : ChainConfig
            Codec and size parameters of the source chain.
        params : dict
            Extra predicate parameters (alternative validators, ...).
        """
        ctx = PredicateContext(
            e=e,
            family=e.family,
            source_chain=source_chain,
            authority_set=authority_set,
            config=config,
            params=params or {},
        )

        predicates = get_pipeline_for_family(e.family)

        results: List[PredicateResult] = []
        violated: List[PredicateName] = []

        for pred in predicates:
            try:
                res = pred(ctx)
            except Exception as exc:
                logger.exception("predicate %s raised", pred.name.value)
                return AuthorizationResult(
                    authorized=False,
                    violated_predicates=violated,
                    predicate_results=results,
                    error=f"{pred.name.value}: {type(exc).__name__}: {exc}",
                )
            results.append(res)
            if not res.ok:
                violated.append(res.name)
                # later predicates depend on earlier ones holding
                break

        authorized = not violated
        if authorized:
            logger.info("finality evidence authorized (%d predicates)", len(results))
        else:
            logger.info("finality evidence rejected: %s", results[-1].reason)

        return AuthorizationResult(
            authorized=authorized,
            violated_predicates=violated,
            predicate_results=results,
            error=None,
        )
