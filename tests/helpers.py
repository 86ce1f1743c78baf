from datetime import date
from decimal import Decimal

from cca_sim.data_models import CalculationBase, CCAConfig, Injection, PersonType


def make_config(*injections: Injection, **overrides) -> CCAConfig:
    params = dict(
        injections=tuple(injections),
        annual_rate=Decimal("5"),
        vat_rate=Decimal("10"),
        withholding_moral_rate=Decimal("30"),
        withholding_natural_rate=Decimal("15"),
        end_date=date(2025, 5, 31),
        calculation_base=CalculationBase.MONTHLY,
    )
    params.update(overrides)
    return CCAConfig(**params)


def make_injection(injection_id: str, month: int, year: int, amount: str, pct_part1: str = "80",
                   type_part1: PersonType = PersonType.MORAL,
                   type_part2: PersonType = PersonType.NATURAL) -> Injection:
    return Injection(
        id=injection_id,
        month=month,
        year=year,
        amount=Decimal(amount),
        pct_part1=Decimal(pct_part1),
        type_part1=type_part1,
        type_part2=type_part2,
    )


def cents(value) -> Decimal:
    return round(Decimal(value), 2)
