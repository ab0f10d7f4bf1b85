import pytest

from formulaopt.config import AppSettings, AnnealingSettings, GeneticSettings
from formulaopt.models import FormulationRequest
from formulaopt.storage import FormulationStore, SessionStore


def make_request(*apis, **kwargs) -> FormulationRequest:
    """Request from (name, strength) pairs; defaults to paracetamol 500 mg."""
    apis = apis or (("paracetamol", 500),)
    return FormulationRequest(
        apis=[{"name": name, "strength": strength} for name, strength in apis],
        **kwargs,
    )


@pytest.fixture
def paracetamol_request():
    return make_request()


@pytest.fixture
def combination_request():
    return make_request(("paracetamol", 325), ("ibuprofen", 200), product_form="capsule")


@pytest.fixture
def fast_settings(tmp_path):
    """Small search budgets so stochastic strategies finish quickly."""
    return AppSettings(
        data_dir=tmp_path / "data",
        seed=7,
        genetic=GeneticSettings(population_size=20, generations=15),
        annealing=AnnealingSettings(iterations=150),
    )


@pytest.fixture
def store(tmp_path):
    return FormulationStore(tmp_path / "store.db")


@pytest.fixture
def session(tmp_path):
    return SessionStore(tmp_path / "session.json")
