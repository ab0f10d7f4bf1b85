import pytest

from formulaopt.catalog import ExcipientRole
from formulaopt.config import ConstraintLimits, ScoreWeights
from formulaopt.optimization.formulation import (
    ExcipientComponent,
    Genome,
    assemble_formulation,
    build_formulation,
)
from formulaopt.optimization.scoring import (
    Metrics,
    calculate_cost_analysis,
    calculate_metrics,
    check_constraints,
    clamp,
    cost_efficiency,
    fitness,
    generate_quality_tests,
    generate_recommendations,
    overall_score,
    weighted_score,
)

from conftest import make_request


def test_clamp():
    assert clamp(-5) == 0
    assert clamp(120) == 100
    assert clamp(42) == 42


def test_standard_paracetamol_metrics(paracetamol_request):
    m = calculate_metrics(build_formulation(paracetamol_request, 0))
    assert m.cost == 100
    assert m.performance == 100
    assert m.stability == 90
    assert m.compliance == 95
    # five components, no complex excipient
    assert m.manufacturability == 95


def test_out_of_range_dose_penalised():
    m = calculate_metrics(build_formulation(make_request(("paracetamol", 100)), 0))
    assert m.performance == 70


def test_multi_api_scores(combination_request):
    m = calculate_metrics(build_formulation(combination_request, 0))
    assert m.compliance == 90
    # +5 stable paracetamol, -10 light-sensitive ibuprofen
    assert m.stability == 80


def test_sensitive_api_stability():
    m = calculate_metrics(build_formulation(make_request(("amoxicillin", 500)), 0))
    assert m.stability == 75


def test_complex_excipients_lower_manufacturability(paracetamol_request):
    m = calculate_metrics(build_formulation(paracetamol_request, 1))
    assert m.manufacturability == 90


def test_scores_stay_in_range():
    req = make_request(("amoxicillin", 2000), ("ibuprofen", 2000), ("omeprazole", 2000))
    for variant in range(3):
        m = calculate_metrics(build_formulation(req, variant))
        for value in (m.cost, m.performance, m.stability, m.compliance, m.manufacturability):
            assert 0 <= value <= 100


def test_cost_efficiency_floor_at_budget():
    # 2000 mg omeprazole costs $6 of API alone against a $50 budget
    req = make_request(("omeprazole", 2000), budget=50)
    m = calculate_metrics(build_formulation(req, 0))
    assert m.cost == 88


def test_overall_score_weighting():
    m = Metrics(cost=100, performance=50, stability=50, compliance=100)
    assert weighted_score(m, ScoreWeights()) == pytest.approx(40 + 15 + 10 + 10)
    assert overall_score(m) == 75
    cost_goal = ScoreWeights(cost=0.5, performance=0.2, stability=0.2, compliance=0.1)
    assert overall_score(m, cost_goal) == 80


def test_cost_analysis(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    cost = calculate_cost_analysis(f)
    assert cost.material == pytest.approx(f.material_cost)
    assert cost.manufacturing == pytest.approx(286.0)
    assert cost.total == pytest.approx(cost.material + cost.manufacturing)
    assert cost.typical == pytest.approx(cost.total * 1.3)
    assert cost.savings == pytest.approx(cost.typical - cost.total)
    assert cost.efficiency == 23


def test_constraints_pass(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    report = check_constraints(f, calculate_metrics(f))
    assert report.passed
    assert report.violations == []


def test_constraints_cost_too_low():
    f = build_formulation(make_request(("omeprazole", 20)), 0)
    report = check_constraints(f, calculate_metrics(f))
    assert not report.passed
    assert "Cost too low for viable production" in report.violations


def test_constraints_cost_too_high():
    f = build_formulation(make_request(("metformin", 1000), product_form="syrup"), 0)
    report = check_constraints(f, calculate_metrics(f))
    assert "Exceeds maximum cost of $500" in report.violations


def test_constraints_score_thresholds(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    metrics = Metrics(cost=100, performance=50, stability=60, compliance=80)
    report = check_constraints(f, metrics)
    assert report.violations == [
        "Performance below minimum threshold (60%)",
        "Stability below minimum threshold (70%)",
        "Compliance below minimum threshold (90%)",
    ]


def test_constraint_limits_are_configurable(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    report = check_constraints(f, calculate_metrics(f), ConstraintLimits(max_cost=100))
    assert report.violations == ["Exceeds maximum cost of $100"]


def test_recommendations():
    assert generate_recommendations(Metrics(100, 100, 100, 100)) == [
        "Formulation meets all optimization criteria"
    ]
    recs = generate_recommendations(Metrics(cost=60, performance=70, stability=75, compliance=90))
    assert recs == [
        "Consider alternative excipients to reduce costs",
        "Review API ratios for optimal therapeutic effect",
        "Add stabilizers or consider different packaging",
        "Verify excipient regulatory status for target markets",
    ]


def test_quality_tests(paracetamol_request):
    tests = generate_quality_tests(build_formulation(paracetamol_request, 0))
    assert [t["test"] for t in tests] == [
        "Identification", "Assay", "Dissolution", "Uniformity of Dosage Units"
    ]
    assert all(t["status"] == "pass" for t in tests)


def _with_extra_excipient(request, name, compatibility):
    f = build_formulation(request, 0)
    f.excipients.append(ExcipientComponent(
        name=name,
        role=ExcipientRole.FILLER,
        weight=10.0,
        cost=0.0001,
        compatibility=compatibility,
    ))
    return f


def test_incompatible_excipient_lowers_stability(paracetamol_request):
    f = _with_extra_excipient(paracetamol_request, "Mannitol", ("omeprazole",))
    assert calculate_metrics(f).stability == 75


def test_prohibited_excipient_zeroes_compliance(paracetamol_request):
    f = _with_extra_excipient(paracetamol_request, "Prohibited Substance", ("paracetamol",))
    m = calculate_metrics(f)
    assert m.compliance == 0
    assert m.stability == 90
    report = check_constraints(f, m)
    assert "Compliance below minimum threshold (90%)" in report.violations


def test_cost_efficiency_is_unrounded(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    assert cost_efficiency(f) == pytest.approx((1 - f.material_cost / 250) * 100)
    assert cost_efficiency(f) < 100


def test_fitness_prefers_simple_excipients(paracetamol_request):
    simple = assemble_formulation(paracetamol_request, Genome(choices=(0, 0, 0, 0), scale=1.0))
    complex_ = assemble_formulation(paracetamol_request, Genome(choices=(1, 1, 0, 0), scale=1.0))
    assert calculate_metrics(simple).manufacturability > calculate_metrics(complex_).manufacturability
    assert fitness(simple) > fitness(complex_)


def test_fitness_rewards_lighter_cheaper_blend(paracetamol_request):
    light = assemble_formulation(paracetamol_request, Genome(choices=(0, 0, 0, 0), scale=0.6))
    heavy = assemble_formulation(paracetamol_request, Genome(choices=(0, 0, 0, 0), scale=1.4))
    assert overall_score(calculate_metrics(light)) == overall_score(calculate_metrics(heavy))
    assert fitness(light) > fitness(heavy)


def test_fitness_weights_follow_goal():
    balanced = build_formulation(make_request(), 0)
    stability = build_formulation(make_request(primary_goal="stability"), 0)
    # balanced 0.25/0.25/0.2/0.2/0.1, stability 0.1/0.2/0.5/0.1/0.1
    assert fitness(balanced) == pytest.approx(
        0.25 * cost_efficiency(balanced) + 25 + 18 + 19 + 9.5
    )
    assert fitness(stability) == pytest.approx(
        0.1 * cost_efficiency(stability) + 20 + 45 + 9.5 + 9.5
    )
