# src/helper/ancestry.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from grandpa.errors import AncestryError, NotDescendantError, UnreachableCapabilityError
from grandpa.models import ChainHeader, HeaderId


class Chain(ABC):
    """
    Ancestry oracle consumed by commit validation.

    Exactly two capabilities:

      * ancestry(base, block):
            hashes strictly between `block` and `base`, walking from
            `block` towards `base`; raises NotDescendantError when no
            such route is known.

      * best_chain_containing(block):
            the best block a voter would vote for on top of `block`.
            Only meaningful to an active voter.
    """

    @abstractmethod
    def ancestry(self, base: bytes, block: bytes) -> List[bytes]:
        raise NotImplementedError

    @abstractmethod
    def best_chain_containing(self, block: bytes) -> Optional[HeaderId]:
        raise NotImplementedError

    def is_equal_or_descendant_of(self, base: bytes, block: bytes) -> bool:
        if base == block:
            return True
        try:
            self.ancestry(base, block)
        except AncestryError:
            return False
        return True


class AncestryChain(Chain):
    """
    Ancestry oracle over the headers embedded in a justification.

    Built once per verification from `votes_ancestries` as a flat
    hash → parent_hash map. If two headers share a hash, the later one
    wins.
    """

    def __init__(self, headers: Iterable[ChainHeader]) -> None:
        self._parents: Dict[bytes, bytes] = {
            header.hash(): header.parent_hash for header in headers
        }

    def ancestry(self, base: bytes, block: bytes) -> List[bytes]:
        """
        Return the route from `block` down to `base`, both excluded,
        nearest to `block` first.

            base <- a <- b <- block   ==>   [b, a]
        """
        route: List[bytes] = []
        current = block
        while current != base:
            parent = self._parents.get(current)
            # a route can visit each known header at most once
            if parent is None or len(route) >= len(self._parents):
                raise NotDescendantError(base, block)
            current = parent
            route.append(current)

        if route:
            route.pop()  # the last step reached `base`
        return route

    def best_chain_containing(self, block: bytes) -> Optional[HeaderId]:
        raise UnreachableCapabilityError(
            "best_chain_containing is only used while voting; "
            "justification verification must never call it"
        )
