# src/verifier/commit.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set

from pydantic import BaseModel

from grandpa.models import Commit, HeaderId, VoterSet
from helper.ancestry import Chain


class CommitValidationResult(BaseModel):
    """
    Outcome of validating a commit against a voter set.

    Fields:
      * ghost:
          The best block with supermajority support, when it exists and
          is equal to or a descendant of the commit target. None means
          the commit does not justify its target.
      * num_precommits / num_duplicated_precommits / num_equivocations /
        num_invalid_voters:
          Counters useful for diagnostics; they do not change the verdict.
    """

    ghost: Optional[HeaderId] = None
    num_precommits: int = 0
    num_duplicated_precommits: int = 0
    num_equivocations: int = 0
    num_invalid_voters: int = 0


class CommitValidator(ABC):
    """
    Pluggable, stateless supermajority strategy.

    Contract: given the commit, the voter set and an ancestry oracle,
    return a result whose `ghost` is the supermajority-backed candidate,
    or None when no such candidate exists. Ancestry failures raised by
    the oracle may propagate as AncestryError.
    """

    @abstractmethod
    def validate(self, commit: Commit, voters: VoterSet, chain: Chain) -> CommitValidationResult:
        raise NotImplementedError


class _VoteGraph:
    """
    Cumulative vote weight over the blocks between the commit target
    (the base) and each vote target.

    A vote for block B counts for B and every ancestor of B down to the
    base, so weight(X) is the weight of votes on X or its descendants.
    """

    def __init__(self, base: HeaderId) -> None:
        self.base = base
        self.weights: Dict[bytes, int] = {base[0]: 0}
        self.numbers: Dict[bytes, int] = {base[0]: base[1]}
        self.children: Dict[bytes, Set[bytes]] = {}

    def insert(self, target: HeaderId, route: List[bytes], weight: int) -> None:
        # route excludes both target and base, nearest to target first
        if target[0] == self.base[0]:
            self.weights[target[0]] += weight
            return

        path = [target[0], *route, self.base[0]]
        for offset, block in enumerate(path):
            self.numbers.setdefault(block, target[1] - offset)
            self.weights[block] = self.weights.get(block, 0) + weight
            if offset:
                self.children.setdefault(block, set()).add(path[offset - 1])

    def find_ghost(self, threshold: int, extra_weight: int) -> Optional[HeaderId]:
        """
        Descend from the base through children that still reach the
        threshold. Ties go to the heavier child, then to the lower hash.
        """
        current = self.base[0]
        if self.weights[current] + extra_weight < threshold:
            return None

        while True:
            heavy = [
                child
                for child in self.children.get(current, ())
                if self.weights[child] + extra_weight >= threshold
            ]
            if not heavy:
                return current, self.numbers[current]
            current = min(heavy, key=lambda child: (-self.weights[child], child))


class GhostCommitValidator(CommitValidator):
    """
    GRANDPA commit validation.

    Steps:
      1) every precommit must target a block at or above the commit
         target that is equal to or a descendant of it; otherwise the
         commit cannot justify its target;
      2) import precommits in order:
            - authorities outside the voter set are counted and ignored;
            - an identical repeated vote is a duplicate and ignored;
            - a different second vote is an equivocation; from then on
              the voter's weight counts for every block and any further
              votes by that voter are ignored;
      3) the ghost is the highest block reached by descending from the
         target while (vote weight + equivocator weight) >= threshold;
      4) the ghost is reported only if it is equal to or a descendant
         of the commit target.
    """

    def validate(self, commit: Commit, voters: VoterSet, chain: Chain) -> CommitValidationResult:
        result = CommitValidationResult(num_precommits=len(commit.precommits))
        base = commit.target()

        for signed in commit.precommits:
            precommit = signed.precommit
            if precommit.target_number < commit.target_number:
                return result
            if not chain.is_equal_or_descendant_of(commit.target_hash, precommit.target_hash):
                return result

        first_votes: Dict[bytes, HeaderId] = {}
        routes: Dict[bytes, List[bytes]] = {}
        equivocated: Set[bytes] = set()

        for signed in commit.precommits:
            voter = signed.id
            target = signed.precommit.target()

            if not voters.contains(voter):
                result.num_invalid_voters += 1
                continue
            if voter in equivocated:
                # the voter already counts for every block
                continue

            previous = first_votes.get(voter)
            if previous == target:
                result.num_duplicated_precommits += 1
                continue

            # resolved for every imported vote; failures propagate
            route = chain.ancestry(commit.target_hash, target[0])

            if previous is None:
                first_votes[voter] = target
                routes[voter] = route
                continue

            result.num_equivocations += 1
            equivocated.add(voter)

        graph = _VoteGraph(base)
        for voter, target in first_votes.items():
            if voter not in equivocated:
                graph.insert(target, routes[voter], voters.weight(voter))

        equivocated_weight = sum(voters.weight(voter) for voter in equivocated)
        ghost = graph.find_ghost(voters.threshold, equivocated_weight)

        if (
            ghost is not None
            and ghost[1] >= commit.target_number
            and chain.is_equal_or_descendant_of(commit.target_hash, ghost[0])
        ):
            result.ghost = ghost
        return result
