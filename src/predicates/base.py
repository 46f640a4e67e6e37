# src/predicates/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from grandpa.config import ChainConfig, DEFAULT_CHAIN_CONFIG
from grandpa.enums import PredicateName, VerificationFamily
from grandpa.evidence import Evidence
from grandpa.models import AuthoritySet


JsonDict = Dict[str, Any]


class PredicateLayer(str, Enum):
    """
    Logical layer of a predicate.

      * EVIDENCE:
          Inspects only the evidence object e (header reference, shape).

      * FINALITY:
          Additionally depends on destination-side knowledge of the source
          chain's consensus, here the current GRANDPA authority set.

    Purely descriptive; it does not change how predicates run.
    """

    EVIDENCE = "evidence"
    FINALITY = "finality"


class PredicateContext(BaseModel):
    """
    Unified input passed to every predicate.

      * e:             evidence to judge
      * family:        verification family that produced e
      * source_chain:  chain the relay is importing from; when set, the
                       evidence must name the same chain
      * authority_set: current GRANDPA authority set of the source chain
                       as stored on the destination chain; None if unknown
      * config:        per-chain codec and size parameters
      * params:        free-form knobs (e.g. an alternative commit validator)
    """

    e: Evidence = Field(
        ...,
        description="Evidence object that claims to prove finality.",
    )

    family: VerificationFamily = Field(
        ...,
        description="Verification family of e.",
    )

    source_chain: Optional[str] = Field(
        default=None,
        description="Expected source chain identifier.",
    )

    authority_set: Optional[AuthoritySet] = Field(
        default=None,
        description="Authority set expected to have signed the justification.",
    )

    config: ChainConfig = Field(
        default=DEFAULT_CHAIN_CONFIG,
        description="Per-chain codec and size parameters.",
    )

    params: JsonDict = Field(
        default_factory=dict,
        description="Optional predicate parameters.",
    )

    class Config:
        # params may hold arbitrary Python objects (validators, verifiers)
        arbitrary_types_allowed = True


class PredicateResult(BaseModel):
    """
    Result of evaluating a single predicate.

      * name:     which predicate ran
      * ok:       True iff the predicate holds for the context
      * reason:   human-readable explanation, mainly for failures
      * metadata: structured data for logs and scenario reports
                  (target number, error kind, ...)
    """

    name: PredicateName
    ok: bool
    reason: Optional[str] = None
    metadata: JsonDict = Field(default_factory=dict)


class Predicate(ABC):
    """
    Abstract base class of all predicates (HdrRef, Final).

    Subclasses set `name`, `layer` and `description`, and implement
    `evaluate`. Predicates read only from the context and keep no state,
    so a single instance can serve concurrent callers.
    """

    name: PredicateName
    layer: PredicateLayer
    description: str = ""

    def __call__(self, ctx: PredicateContext) -> PredicateResult:
        return self.evaluate(ctx)

    @abstractmethod
    def evaluate(self, ctx: PredicateContext) -> PredicateResult:
        """
        Core predicate logic. Must return a PredicateResult with `name`
        set to `self.name`; violations are reported with ok=False, never
        raised.
        """
        raise NotImplementedError
