import pytest

from formulaopt.catalog import ExcipientRole
from formulaopt.optimization.formulation import (
    Genome,
    assemble_formulation,
    build_formulation,
    choice_counts,
    round_half_up,
)

from conftest import make_request


def test_round_half_up():
    assert round_half_up(4.5) == 5
    assert round_half_up(22.5) == 23
    assert round_half_up(0.32) == 0


def test_variant_genome():
    assert Genome.for_variant(0) == Genome(choices=(0, 0, 0, 0), scale=0.8)
    assert Genome.for_variant(2).scale == 1.0


def test_scale_is_clamped():
    g = Genome.for_variant(0)
    assert g.with_scale(3.0).scale == 1.5
    assert g.with_scale(0.1).scale == 0.5


def test_choice_counts_paracetamol():
    # binder, disintegrant, lubricant, filler
    assert choice_counts(["paracetamol"]) == (3, 2, 2, 2)


def test_standard_variant(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    amounts = {i.name: i.amount for i in f.ingredients}
    assert amounts == {
        "Paracetamol (Acetaminophen)": 500,
        "Povidone": 8,
        "Sodium starch glycolate": 20,
        "Magnesium stearate": 4,
        "Microcrystalline cellulose": 40,
    }
    assert f.total_weight == 572
    assert f.manufacturing_process == "Direct Compression"
    assert f.manufacturing_cost == pytest.approx(286.0)
    assert f.api_cost == pytest.approx(0.6)


def test_enhanced_variant_rounds_half_up(paracetamol_request):
    f = build_formulation(paracetamol_request, 1)
    amounts = {i.name: i.amount for i in f.ingredients if i.type != "api"}
    assert amounts == {
        "HPMC": 9,
        "Croscarmellose sodium": 23,
        "Stearic acid": 5,
        "Lactose": 45,
    }


def test_choice_wraps_around_available_excipients(paracetamol_request):
    f = build_formulation(paracetamol_request, 2)
    names = [e.name for e in f.excipients]
    assert names == ["Gelatin", "Sodium starch glycolate", "Magnesium stearate",
                     "Microcrystalline cellulose"]
    assert f.total_weight == 590


@pytest.mark.parametrize("variant", [0, 1, 2])
def test_total_weight_is_sum_of_ingredients(combination_request, variant):
    f = build_formulation(combination_request, variant)
    assert f.total_weight == pytest.approx(sum(i.amount for i in f.ingredients))
    assert f.material_cost == pytest.approx(sum(i.cost for i in f.ingredients))


def test_excipient_cost_uses_cost_per_gram(paracetamol_request):
    f = build_formulation(paracetamol_request, 0)
    povidone = f.excipients[0]
    assert povidone.cost == pytest.approx(8 * 0.05 / 1000)


def test_manufacturing_by_form():
    f = build_formulation(make_request(product_form="syrup"), 0)
    assert f.manufacturing_process == "Liquid Mixing"
    assert f.manufacturing_cost == pytest.approx(f.total_weight * 1.0)

    f = build_formulation(make_request(product_form="capsule"), 0)
    assert f.manufacturing_process == "Encapsulation"
    assert f.manufacturing_cost == pytest.approx(f.total_weight * 0.75)


def test_every_role_present(paracetamol_request):
    f = assemble_formulation(paracetamol_request, Genome(choices=(1, 1, 0, 1), scale=1.2))
    for role in ExcipientRole:
        assert f.has_role(role)
    assert f.component_count == 5


def test_signature_distinguishes_weights(paracetamol_request):
    a = assemble_formulation(paracetamol_request, Genome(choices=(0, 0, 0, 0), scale=0.8))
    b = assemble_formulation(paracetamol_request, Genome(choices=(0, 0, 0, 0), scale=1.0))
    assert a.signature() != b.signature()


def test_to_dict(paracetamol_request):
    d = build_formulation(paracetamol_request, 0).to_dict()
    assert d["product_form"] == "tablet"
    assert d["genome"] == {"choices": [0, 0, 0, 0], "scale": 0.8}
    assert len(d["ingredients"]) == 5
