"""Tests for constraint construction."""

import pytest

from temperament_solver import config
from temperament_solver.cents import ratio_to_cents, signed_wrap_diff, wrap_to_cycle
from temperament_solver.constraints import (
    build_constraints,
    estimate_generator_steps,
    estimate_period_comp,
    estimate_period_steps,
    fallback_constraint,
    normalize_weights,
)
from temperament_solver.models import (
    Constraint,
    OctaAnchor,
    OctaWeighting,
    RatioSpec,
    SolveError,
    SolverInput,
)


FIFTH = RatioSpec(3, 2)
THIRD = RatioSpec(5, 4)
MINOR_THIRD = RatioSpec(6, 5)


class TestEstimateGeneratorSteps:
    """Tests for estimate_generator_steps function."""

    def test_fifth_is_one_step(self):
        """3/2 is one generator up."""
        assert estimate_generator_steps(ratio_to_cents(3, 2), 1200.0) == 1

    def test_fourth_is_minus_one(self):
        """4/3 is one generator down."""
        assert estimate_generator_steps(ratio_to_cents(4, 3), 1200.0) == -1

    def test_whole_tone_is_two(self):
        """9/8 is two generators up."""
        assert estimate_generator_steps(ratio_to_cents(9, 8), 1200.0) == 2

    def test_major_third_is_schismatic(self):
        """With a pure-fifth chain, 5/4 is best reached 8 fifths down."""
        assert estimate_generator_steps(ratio_to_cents(5, 4), 1200.0) == -8

    def test_never_zero(self):
        """The unison is not reachable with zero steps."""
        assert estimate_generator_steps(0.0, 1200.0) != 0

    def test_steps_within_range(self):
        """Results stay within the searched range."""
        for cents in range(0, 1200, 50):
            k = estimate_generator_steps(float(cents), 1200.0)
            assert 1 <= abs(k) <= config.GENERATOR_STEP_RANGE

    def test_reference_can_be_overridden(self):
        """A different reference generator changes the chain walked."""
        # With a 696-cent fifth, 384 cents is exactly 4 fifths up
        assert estimate_generator_steps(384.0, 1200.0, reference_generator=696.0) == 4


class TestPeriodSteps:
    """Tests for the period wrap estimates."""

    def test_period_comp_for_third(self):
        """-8 fifths overshoots 5/4 downward by 5 octaves."""
        ideal = ratio_to_cents(5, 4)
        assert estimate_period_comp(ideal, -8, 1200.0) == -5

    def test_period_steps_is_opposite_of_comp(self):
        """period_steps reconciles the chain from the other side."""
        ideal = ratio_to_cents(9, 8)
        assert estimate_period_steps(ideal, 2, 1200.0) == -1
        assert estimate_period_comp(ideal, 2, 1200.0) == 1

    def test_reconciles_chain(self):
        """steps * ref + period_steps * period lands near ideal."""
        ref = config.REF_GENERATOR_CENTS
        for n, d in [(3, 2), (4, 3), (5, 4), (6, 5), (7, 4)]:
            ideal = wrap_to_cycle(ratio_to_cents(n, d), 1200.0)
            steps = estimate_generator_steps(ideal, 1200.0)
            period_steps = estimate_period_steps(ideal, steps, 1200.0)
            assert abs(steps * ref + period_steps * 1200.0 - ideal) < 60.0

    def test_zero_steps(self):
        """A zero-step constraint has no period steps."""
        assert estimate_period_steps(1200.0, 0, 1200.0) == 0


class TestEqualWeighted:
    """Tests for equal-weighted constraint building."""

    def test_one_constraint_per_target(self):
        """Each target becomes one constraint with weight 1/count."""
        constraints = build_constraints(
            SolverInput(scale_size=12, targets=(FIFTH, THIRD, MINOR_THIRD))
        )
        assert [c.label for c in constraints] == ["3/2", "5/4", "6/5"]
        for c in constraints:
            assert c.weight == pytest.approx(1 / 3)

    def test_ideal_cents_are_wrapped(self):
        """Targets wider than the period are folded into it."""
        constraints = build_constraints(SolverInput(scale_size=12, targets=(RatioSpec(3, 1),)))
        assert constraints[0].ideal_cents == pytest.approx(701.955, abs=1e-3)

    def test_no_period_comp(self):
        """Plain targets carry no period compensation."""
        constraints = build_constraints(SolverInput(scale_size=12, targets=(FIFTH,)))
        assert constraints[0].period_comp is None
        assert constraints[0].anchor_id is None


class TestMatrixWeighted:
    """Tests for matrix-weighted constraint building."""

    def test_weights_from_map(self):
        """Weights come from the map, then get normalized."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            targets=(FIFTH, THIRD),
            target_weights={"3/2": 0.75, "5/4": 0.25},
        ))
        weights = {c.label: c.weight for c in constraints}
        assert weights == pytest.approx({"3/2": 0.75, "5/4": 0.25})

    def test_below_threshold_is_dropped(self):
        """Targets at or below the threshold are excluded."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            targets=(FIFTH, THIRD, MINOR_THIRD),
            target_weights={"3/2": 0.5, "5/4": 0.0005},
        ))
        assert [c.label for c in constraints] == ["3/2"]
        assert constraints[0].weight == pytest.approx(1.0)

    def test_all_below_threshold_falls_back_to_equal(self):
        """A map with no meaningful entries is ignored."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            targets=(FIFTH, THIRD),
            target_weights={"3/2": 0.0, "5/4": 0.001},
        ))
        assert len(constraints) == 2
        assert constraints[0].weight == pytest.approx(0.5)


class TestOctaWeighted:
    """Tests for octave-weighted constraint building."""

    def test_default_anchor_set(self):
        """Without custom targets, all eight anchors are used."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            targets=(FIFTH,),
            octa_weighting=OctaWeighting(enabled=True, x=0.5, y=0.5, z=0.5),
        ))
        assert len(constraints) == 8
        assert all(c.anchor_id is not None for c in constraints)
        assert all(c.period_comp is not None for c in constraints)
        assert sum(c.weight for c in constraints) == pytest.approx(1.0)

    def test_takes_priority_over_matrix(self):
        """Octave weighting wins over a target weight map."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            targets=(THIRD,),
            target_weights={"5/4": 1.0},
            octa_weighting=OctaWeighting(enabled=True, x=0.0, y=0.0, z=0.0),
        ))
        assert {c.anchor_id for c in constraints} == {
            "v000", "v001", "v100", "v101", "v010", "v011", "v110", "v111"
        }

    def test_corner_weights(self):
        """At the origin only the fifth anchor has weight."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            octa_weighting=OctaWeighting(enabled=True, x=0.0, y=0.0, z=0.0),
        ))
        weights = {c.anchor_id: c.weight for c in constraints}
        assert weights["v000"] == pytest.approx(1.0)
        assert weights["v100"] == pytest.approx(0.0)

    def test_custom_anchors(self):
        """Custom anchors replace the built-in set."""
        anchors = (OctaAnchor("v000", 3, 2, "Fifth"), OctaAnchor("v100", 5, 4, "Third"))
        constraints = build_constraints(SolverInput(
            scale_size=12,
            octa_weighting=OctaWeighting(enabled=True, x=0.5, y=0.0, z=0.0, targets=anchors),
        ))
        assert [c.label for c in constraints] == ["Fifth (3/2)", "Third (5/4)"]
        assert [c.weight for c in constraints] == pytest.approx([0.5, 0.5])

    def test_period_comp_reconciles_reference_chain(self):
        """steps * ref - comp * period lands near the ideal."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            octa_weighting=OctaWeighting(enabled=True),
        ))
        ref = config.REF_GENERATOR_CENTS
        for c in constraints:
            assert abs(c.generator_steps * ref - c.period_comp * 1200.0 - c.ideal_cents) < 60.0

    def test_disabled_is_ignored(self):
        """A disabled weighting block does not change the mode."""
        constraints = build_constraints(SolverInput(
            scale_size=12,
            targets=(FIFTH,),
            octa_weighting=OctaWeighting(enabled=False),
        ))
        assert [c.label for c in constraints] == ["3/2"]


class TestFallback:
    """Tests for the synthesized 3/2 fallback."""

    def test_empty_targets(self):
        """No targets at all yields the pure fifth."""
        constraints = build_constraints(SolverInput(scale_size=12))
        assert len(constraints) == 1
        only = constraints[0]
        assert (only.n, only.d) == (3, 2)
        assert only.weight == pytest.approx(1.0)
        assert only.generator_steps == 1

    def test_fallback_constraint(self):
        """fallback_constraint is the wrapped pure fifth."""
        c = fallback_constraint(1200.0)
        assert c.ideal_cents == pytest.approx(701.955, abs=1e-3)
        assert c.generator_steps == 1

    def test_never_zero_steps(self):
        """No built constraint ever has zero generator steps."""
        for targets in [(), (FIFTH,), (RatioSpec(2, 1), THIRD)]:
            for c in build_constraints(SolverInput(scale_size=12, targets=targets)):
                assert c.generator_steps != 0


class TestNormalizeWeights:
    """Tests for normalize_weights function."""

    def _constraint(self, weight):
        return Constraint("3/2", 3, 2, weight, 701.955, 1)

    def test_sums_to_one(self):
        """Weights are rescaled to sum to 1."""
        normalized = normalize_weights([self._constraint(2.0), self._constraint(6.0)])
        assert [c.weight for c in normalized] == pytest.approx([0.25, 0.75])

    def test_zero_total_unchanged(self):
        """All-zero weights are left alone."""
        normalized = normalize_weights([self._constraint(0.0), self._constraint(0.0)])
        assert [c.weight for c in normalized] == [0.0, 0.0]

    def test_input_not_mutated(self):
        """Normalization builds new constraints."""
        original = [self._constraint(4.0)]
        normalize_weights(original)
        assert original[0].weight == 4.0

    def test_overflowing_total_raises(self):
        """Weights too large to sum are a solve failure, not zeros."""
        with pytest.raises(SolveError):
            normalize_weights([self._constraint(1e308), self._constraint(1e308)])


def test_ideal_matches_chain_estimate():
    """The estimated chain position is the closest one to the ideal."""
    ideal = ratio_to_cents(6, 5)
    steps = estimate_generator_steps(ideal, 1200.0)
    ref = config.REF_GENERATOR_CENTS
    best = abs(signed_wrap_diff(wrap_to_cycle(steps * ref, 1200.0), ideal, 1200.0))
    for k in range(-31, 32):
        if k:
            assert best <= abs(signed_wrap_diff(wrap_to_cycle(k * ref, 1200.0), ideal, 1200.0))
