"""
Predicate registry.

Every predicate class is registered under its PredicateName, and each
verification family maps to the ordered list of predicates the
authorizer runs for it. Evidence-layer predicates come first: Final is
meaningless for evidence without a header.
"""
from __future__ import annotations

from typing import Dict, List, Type

from grandpa.enums import PredicateName, VerificationFamily
from predicates.base import Predicate
from predicates.evidenceLayer.hdrRef import HdrRefPredicate
from predicates.finalityLayer.final import FinalPredicate


PREDICATE_CLASSES: Dict[PredicateName, Type[Predicate]] = {
    PredicateName.HDR_REF: HdrRefPredicate,
    PredicateName.FINAL: FinalPredicate,
}

FAMILY_PIPELINES: Dict[VerificationFamily, List[PredicateName]] = {
    VerificationFamily.GRANDPA: [PredicateName.HDR_REF, PredicateName.FINAL],
}


def get_pipeline_for_family(family: VerificationFamily) -> List[Predicate]:
    """Fresh predicate instances for `family`, in execution order."""
    return [PREDICATE_CLASSES[name]() for name in FAMILY_PIPELINES[family]]
