# src/verifier/justification.py
from __future__ import annotations

import logging
from typing import Optional, Set

from grandpa.codec import decode_justification
from grandpa.config import ChainConfig, DEFAULT_CHAIN_CONFIG
from grandpa.errors import (
    AncestryError,
    CodecError,
    InvalidAuthoritySignature,
    InvalidJustificationCommit,
    InvalidJustificationTarget,
    InvalidPrecommitAncestries,
    InvalidPrecommitAncestryProof,
    JustificationDecodeError,
    JustificationError,
)
from grandpa.models import HeaderId, SetId, VoterSet
from helper.ancestry import AncestryChain
from helper.crypto import Ed25519SignatureVerifier, SignatureVerifier
from verifier.commit import CommitValidator, GhostCommitValidator

logger = logging.getLogger(__name__)


def verify_justification(
    finalized_target: HeaderId,
    authorities_set_id: SetId,
    authorities_set: VoterSet,
    raw_justification: bytes,
    *,
    config: ChainConfig = DEFAULT_CHAIN_CONFIG,
    commit_validator: Optional[CommitValidator] = None,
    signature_verifier: Optional[SignatureVerifier] = None,
) -> None:
    """
    Verify that `raw_justification`, produced by the given authority set,
    finalizes `finalized_target` = (hash, number).

    Pipeline (stops at the first failure):

      1) decode the SCALE bytes                → JustificationDecodeError
      2) commit target == finalized_target     → InvalidJustificationTarget
      3) commit has a supermajority ghost,
         using only the embedded ancestry      → InvalidJustificationCommit
      4) per precommit, in order:
           a) signature over (precommit, round, set_id)
                                               → InvalidAuthoritySignature
           b) route from the commit target to the precommit target
                                               → InvalidPrecommitAncestryProof
      5) the hashes visited in 4b are exactly
         the hashes of votes_ancestries        → InvalidPrecommitAncestries

    Returns None on success. The function is pure: it keeps no state
    between calls and may run concurrently from any number of threads.
    UnreachableCapabilityError is not a verdict and propagates.
    """
    commit_validator = commit_validator or GhostCommitValidator()
    signature_verifier = signature_verifier or Ed25519SignatureVerifier()

    try:
        justification = decode_justification(raw_justification, config)
    except CodecError as exc:
        raise JustificationDecodeError(str(exc)) from exc

    commit = justification.commit
    if commit.target() != tuple(finalized_target):
        raise InvalidJustificationTarget(
            f"justification finalizes #{commit.target_number} (0x{commit.target_hash.hex()}), "
            f"expected #{finalized_target[1]} (0x{finalized_target[0].hex()})"
        )

    # validate the commit first; it assumes every signature is valid
    ancestry_chain = AncestryChain(justification.votes_ancestries)
    try:
        result = commit_validator.validate(commit, authorities_set, ancestry_chain)
    except AncestryError as exc:
        raise InvalidJustificationCommit(f"commit validation failed: {exc}") from exc
    if result.ghost is None:
        raise InvalidJustificationCommit(
            f"no supermajority for #{commit.target_number} among "
            f"{result.num_precommits} precommits"
        )

    visited_hashes: Set[bytes] = set()
    for index, signed in enumerate(commit.precommits):
        if not signature_verifier.check_message_signature(
            signed.precommit,
            signed.id,
            signed.signature,
            justification.round,
            authorities_set_id,
            config,
        ):
            raise InvalidAuthoritySignature(
                f"precommit #{index} by 0x{signed.id.hex()} has an invalid signature"
            )

        target_hash = signed.precommit.target_hash
        if target_hash == commit.target_hash:
            continue

        try:
            route = ancestry_chain.ancestry(commit.target_hash, target_hash)
        except AncestryError as exc:
            raise InvalidPrecommitAncestryProof(
                f"precommit #{index} target has no route to the commit target: {exc}"
            ) from exc

        # the route starts at the parent, but the target itself is visited too
        visited_hashes.add(target_hash)
        visited_hashes.update(route)

    ancestry_hashes = {header.hash() for header in justification.votes_ancestries}
    if visited_hashes != ancestry_hashes:
        raise InvalidPrecommitAncestries(
            f"{len(ancestry_hashes - visited_hashes)} unused and "
            f"{len(visited_hashes - ancestry_hashes)} missing ancestry headers"
        )

    logger.debug(
        "justification for #%d accepted (round %d, set %d, %d precommits)",
        commit.target_number,
        justification.round,
        authorities_set_id,
        len(commit.precommits),
    )


def check_justification(
    finalized_target: HeaderId,
    authorities_set_id: SetId,
    authorities_set: VoterSet,
    raw_justification: bytes,
    *,
    config: ChainConfig = DEFAULT_CHAIN_CONFIG,
    commit_validator: Optional[CommitValidator] = None,
    signature_verifier: Optional[SignatureVerifier] = None,
) -> Optional[JustificationError]:
    """
    Same as verify_justification, but returns the verdict error (or None
    on success) instead of raising it.
    """
    try:
        verify_justification(
            finalized_target,
            authorities_set_id,
            authorities_set,
            raw_justification,
            config=config,
            commit_validator=commit_validator,
            signature_verifier=signature_verifier,
        )
    except JustificationError as exc:
        logger.debug("justification rejected: %s (%s)", exc.kind.value, exc)
        return exc
    return None
