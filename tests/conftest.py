from decimal import Decimal

import pytest

from cca_sim.data_models import CCAConfig, Injection, PersonType
from tests.helpers import make_config


@pytest.fixture
def reference_injection() -> Injection:
    return Injection(
        id="a",
        month=2,
        year=2025,
        amount=Decimal("100000"),
        pct_part1=Decimal("80"),
        type_part1=PersonType.MORAL,
        type_part2=PersonType.NATURAL,
    )


@pytest.fixture
def reference_config(reference_injection) -> CCAConfig:
    return make_config(reference_injection)


@pytest.fixture
def sample_config_dict() -> dict:
    return {
        "injections": [
            {"id": "a", "month": 2, "year": 2025, "amount": 100000, "pct_part1": 80,
             "type_part1": "PM", "type_part2": "PP"},
            {"id": "b", "month": 4, "year": 2025, "amount": 50000, "pct_part1": 50,
             "type_part1": "Natural person", "type_part2": "Natural person"},
        ],
        "annual_rate": 5,
        "vat_rate": 10,
        "withholding_moral_rate": 30,
        "withholding_natural_rate": 15,
        "end_date": "2025-05-31",
        "calculation_base": "Monthly",
    }
