from datetime import date
from decimal import Decimal

import pytest

from cca_sim.data_models import (
    CalculationBase,
    FinancialSummary,
    Injection,
    InjectionBook,
    PersonType,
)
from tests.helpers import make_config, make_injection


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Moral person", PersonType.MORAL),
        ("PM", PersonType.MORAL),
        ("personne morale", PersonType.MORAL),
        ("Natural person", PersonType.NATURAL),
        (" pp ", PersonType.NATURAL),
        ("Personne Physique", PersonType.NATURAL),
    ],
)
def test_person_type_parse(text, expected):
    assert PersonType.parse(text) is expected


def test_person_type_parse_rejects_unknown_values():
    with pytest.raises(ValueError):
        PersonType.parse("trust")


def test_calculation_base_conventions():
    assert CalculationBase.parse("Mensuel") is CalculationBase.MONTHLY
    assert CalculationBase.parse("daily") is CalculationBase.DAILY
    assert CalculationBase.MONTHLY.duration_unit == "Months"
    assert CalculationBase.DAILY.divisor == Decimal(360)
    with pytest.raises(ValueError):
        CalculationBase.parse("weekly")


def test_injection_derives_part2_and_date():
    injection = make_injection("a", 3, 2025, "1000", "65")

    assert injection.pct_part2 == Decimal("35")
    assert injection.injection_date == date(2025, 3, 1)
    assert injection.label == "3/2025"


def test_injection_is_immutable():
    injection = make_injection("a", 3, 2025, "1000")
    with pytest.raises(AttributeError):
        injection.amount = Decimal("5")


def test_book_replace_swaps_whole_record_and_keeps_snapshots():
    book = InjectionBook([make_injection("a", 1, 2025, "100"), make_injection("b", 2, 2025, "200")])
    snapshot = book.snapshot()

    updated = book.replace("a", amount=Decimal("150"), pct_part1=Decimal("40"))

    assert book.get("a") is updated
    assert updated.amount == Decimal("150")
    assert updated.pct_part2 == Decimal("60")
    assert snapshot[0].amount == Decimal("100")
    assert [i.id for i in book] == ["a", "b"]


def test_book_rejects_duplicate_ids_and_id_changes():
    book = InjectionBook([make_injection("a", 1, 2025, "100")])
    with pytest.raises(ValueError):
        book.add(make_injection("a", 2, 2025, "100"))
    with pytest.raises(ValueError):
        book.replace("a", id="z")
    with pytest.raises(KeyError):
        book.replace("missing", amount=Decimal("1"))


def test_book_add_following_steps_to_next_month():
    book = InjectionBook([make_injection("a", 12, 2025, "100", "70", PersonType.NATURAL)])

    added = book.add_following(Decimal("500"))

    assert (added.month, added.year) == (1, 2026)
    assert added.amount == Decimal("500")
    assert added.pct_part1 == Decimal("80")
    assert added.type_part1 is PersonType.MORAL
    assert added.type_part2 is PersonType.NATURAL
    assert len(book) == 2


def test_book_add_following_takes_the_split_passed_in():
    book = InjectionBook([make_injection("a", 3, 2025, "100")])

    added = book.add_following(
        Decimal("500"), pct_part1=Decimal("60"), type_part1=PersonType.NATURAL, type_part2=PersonType.MORAL
    )

    assert (added.month, added.year) == (4, 2025)
    assert added.pct_part1 == Decimal("60")
    assert added.type_part1 is PersonType.NATURAL
    assert added.type_part2 is PersonType.MORAL


def test_book_add_following_on_empty_book_uses_defaults():
    added = InjectionBook().add_following(Decimal("10"))
    assert (added.month, added.year) == (1, 2025)
    assert added.pct_part1 == Decimal("80")


def test_book_remove_and_global_split():
    book = InjectionBook(
        [
            make_injection("a", 1, 2025, "100", "10"),
            make_injection("b", 2, 2025, "100", "90"),
        ]
    )
    book.apply_global_split(Decimal("55"), PersonType.NATURAL, PersonType.MORAL)

    assert {i.pct_part1 for i in book} == {Decimal("55")}
    assert {i.type_part2 for i in book} == {PersonType.MORAL}

    removed = book.remove("a")
    assert removed.id == "a"
    assert "a" not in book


def test_config_withholding_lookup_and_rates():
    config = make_config()
    assert config.withholding_rate_for(PersonType.MORAL) == Decimal("30")
    assert config.withholding_rate_for(PersonType.NATURAL) == Decimal("15")
    assert config.rates()["end_date"] == "2025-05-31"


def test_financial_summary_addition_is_a_monoid():
    a = FinancialSummary(total_capital=Decimal("1"), net_total=Decimal("2"))
    b = FinancialSummary(total_capital=Decimal("3"), total_vat=Decimal("4"))

    assert a + FinancialSummary() == a
    assert a + b == b + a
    assert (a + b).total_capital == Decimal("4")
    assert (a + b).total_vat == Decimal("4")
    assert (a + b).net_total == Decimal("2")


def test_injection_defaults():
    injection = Injection(id="x", month=1, year=2025, amount=Decimal("1"))
    assert injection.type_part1 is PersonType.MORAL
    assert injection.type_part2 is PersonType.NATURAL
