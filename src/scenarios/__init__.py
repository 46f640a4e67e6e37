# scenarios/__init__.py
from __future__ import annotations

from typing import Dict

from grandpa.enums import VerificationFamily
from scenarios.config import JustificationBuilder, Keyring, SimulationChain
from scenarios.grandpa_threats import SCENARIOS_GRANDPA
from scenarios.threats_base import ThreatId, ThreatScenario


# ---------------------------------------------------------------------
# 1) Family → ThreatScenario registry
# ---------------------------------------------------------------------

FAMILY_SCENARIOS: Dict[VerificationFamily, Dict[ThreatId, ThreatScenario]] = {
    VerificationFamily.GRANDPA: SCENARIOS_GRANDPA,
}


# ---------------------------------------------------------------------
# 2) Default simulated source chain
# ---------------------------------------------------------------------

def make_simulation_chain(chain_id: str = "chain-S") -> SimulationChain:
    """
    Fresh source-chain mirror for one scenario run. Scenarios only read
    headers from it, but a fresh instance keeps runs independent.
    """
    return SimulationChain(chain_id=chain_id)


__all__ = [
    "FAMILY_SCENARIOS",
    "JustificationBuilder",
    "Keyring",
    "SimulationChain",
    "ThreatId",
    "ThreatScenario",
    "make_simulation_chain",
]
