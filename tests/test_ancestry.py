import pytest

from grandpa.errors import NotDescendantError, UnreachableCapabilityError
from grandpa.models import Header
from helper.ancestry import AncestryChain
from scenarios.config import SimulationChain


class TestAncestryChain:
    """Ancestry routes over the headers embedded in a justification."""

    def setup_method(self):
        self.chain = SimulationChain()
        self.h = [self.chain.header(n).hash() for n in range(6)]
        self.ancestry = AncestryChain(self.chain.headers([2, 3, 4]))

    def test_route_excludes_both_ends(self):
        assert self.ancestry.ancestry(self.h[1], self.h[4]) == [self.h[3], self.h[2]]

    def test_direct_child_has_empty_route(self):
        assert self.ancestry.ancestry(self.h[1], self.h[2]) == []

    def test_block_equal_to_base(self):
        assert self.ancestry.ancestry(self.h[1], self.h[1]) == []
        assert self.ancestry.is_equal_or_descendant_of(self.h[1], self.h[1])

    def test_unknown_block(self):
        with pytest.raises(NotDescendantError) as info:
            self.ancestry.ancestry(self.h[1], self.h[5])
        assert info.value.block == self.h[5]
        assert info.value.base == self.h[1]

    def test_base_above_block(self):
        with pytest.raises(NotDescendantError):
            self.ancestry.ancestry(self.h[3], self.h[2])
        assert not self.ancestry.is_equal_or_descendant_of(self.h[3], self.h[2])

    def test_fork_is_not_a_descendant_of_canonical_sibling(self):
        fork = self.chain.fork(1, 2)
        ancestry = AncestryChain([*self.chain.headers([2, 3]), *fork])
        assert ancestry.is_equal_or_descendant_of(self.h[1], fork[1].hash())
        assert not ancestry.is_equal_or_descendant_of(self.h[2], fork[1].hash())

    def test_duplicate_headers_collapse(self):
        ancestry = AncestryChain(self.chain.headers([2, 2, 3]))
        assert ancestry.ancestry(self.h[1], self.h[3]) == [self.h[2]]

    def test_parent_cycle_terminates(self):
        # two headers whose parent hashes point at each other cannot be
        # built from real hashes, so emulate the map directly
        ancestry = AncestryChain([])
        ancestry._parents = {b"a" * 32: b"b" * 32, b"b" * 32: b"a" * 32}
        with pytest.raises(NotDescendantError):
            ancestry.ancestry(b"c" * 32, b"a" * 32)

    def test_best_chain_containing_is_unreachable(self):
        with pytest.raises(UnreachableCapabilityError):
            self.ancestry.best_chain_containing(self.h[2])


class TestSimulationChain:

    def test_headers_link_by_hash(self):
        chain = SimulationChain()
        assert chain.header(0).parent_hash == b"\x00" * 32
        for n in range(1, 5):
            assert chain.header(n).parent_hash == chain.header(n - 1).hash()

    def test_fork_diverges_from_canonical(self):
        chain = SimulationChain()
        fork = chain.fork(1, 1)[0]
        assert isinstance(fork, Header)
        assert fork.number == 2
        assert fork.parent_hash == chain.header(1).hash()
        assert fork.hash() != chain.header(2).hash()
