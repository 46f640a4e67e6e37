# scenarios/runner.py
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from grandpa.enums import VerificationFamily
from scenarios import FAMILY_SCENARIOS, make_simulation_chain
from scenarios.threats_base import Label, ThreatId
from verifier.authorizer import FinalityAuthorizer

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """
    Configuration for a single scenario run:

      - family:    verification family under test
      - threat_id: which threat scenario to instantiate
      - seed:      RNG seed handed to the scenario
    """
    family: VerificationFamily
    threat_id: ThreatId
    seed: Optional[int] = None


@dataclass
class SampleOutcome:
    """
    Verdict of one sample. `correct` means SAFE was authorized, or ATTACK
    was rejected with the scenario's expected error.
    """
    index: int
    label: Label
    authorized: bool
    error_kind: Optional[str]
    correct: bool


def run_single_family_threat(config: RunConfig) -> List[SampleOutcome]:
    """
    Generate one trace for (family, threat_id), push every sample
    through the FinalityAuthorizer and print per-predicate outcomes.
    """
    scenario = FAMILY_SCENARIOS[config.family][config.threat_id]
    chain = make_simulation_chain()
    traces = scenario.generate_trace(chain=chain, kappa=None, seed=config.seed)
    authz = FinalityAuthorizer()

    print(f"=== {config.family.value} / {config.threat_id.value} ===")
    print(scenario.description)

    outcomes: List[SampleOutcome] = []
    for idx, (e, authority_set, label) in enumerate(traces):
        result = authz.authorize(
            e,
            authority_set,
            source_chain=chain.chain_id,
        )

        error_kind = None
        if result.predicate_results:
            error_kind = result.predicate_results[-1].metadata.get("error")

        if label == Label.SAFE:
            correct = result.authorized
        else:
            expected = scenario.expected_error.value if scenario.expected_error else None
            correct = not result.authorized and (expected is None or error_kind == expected)

        outcomes.append(SampleOutcome(idx, label, result.authorized, error_kind, correct))

        print(f"--- sample {idx} ({label.value}) ---")
        print("authorized:", result.authorized, "error:", result.error)
        for pr in result.predicate_results:
            print(f"  {pr.name.value:<8} ok={pr.ok} reason={pr.reason}")
        if not correct:
            logger.warning("sample %d of %s got an unexpected verdict", idx, config.threat_id.value)
        print()

    return outcomes


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run forged-finality scenarios through the GRANDPA finality authorizer.",
    )
    parser.add_argument(
        "threats",
        nargs="*",
        help="threat ids to run (default: all), e.g. F3_forged_signature",
    )
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    family = VerificationFamily.GRANDPA
    available = FAMILY_SCENARIOS[family]
    try:
        threats = [ThreatId(t) for t in args.threats] or list(available)
    except ValueError as exc:
        parser.error(str(exc))

    failures = 0
    for threat_id in threats:
        outcomes = run_single_family_threat(
            RunConfig(family=family, threat_id=threat_id, seed=args.seed)
        )
        failures += sum(1 for o in outcomes if not o.correct)
        print("=" * 60)

    print(f"{len(threats)} scenarios, {failures} unexpected verdicts")
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
