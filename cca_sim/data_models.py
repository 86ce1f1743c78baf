"""Data models for the CCA simulator.

This module defines the enumerations, records and result types used by the
calculation engine: capital injections into a shareholder current account
(CCA), the configuration of a simulation run, and the per-injection, monthly
and summary results it produces. Injections are immutable; the
``InjectionBook`` keeps them addressable by id and replaces whole records on
update.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .utils import add_months


DEFAULT_ANNUAL_RATE = Decimal("5")
DEFAULT_VAT_RATE = Decimal("10")
DEFAULT_PCT_PART1 = Decimal("80")
DEFAULT_WITHHOLDING_MORAL_RATE = Decimal("30")
DEFAULT_WITHHOLDING_NATURAL_RATE = Decimal("15")
DEFAULT_END_DATE = date(2025, 5, 31)

HUNDRED = Decimal(100)


class PersonType(str, Enum):
    """Tax classification of the beneficiary of one part of an injection."""

    MORAL = "Moral person"
    NATURAL = "Natural person"

    @property
    def code(self) -> str:
        return "PM" if self is PersonType.MORAL else "PP"

    @classmethod
    def parse(cls, text: str) -> "PersonType":
        """Parse a classification from its value, short code or French label."""
        key = text.strip().lower()
        aliases = {
            "moral person": cls.MORAL,
            "moral": cls.MORAL,
            "pm": cls.MORAL,
            "personne morale": cls.MORAL,
            "natural person": cls.NATURAL,
            "natural": cls.NATURAL,
            "pp": cls.NATURAL,
            "personne physique": cls.NATURAL,
        }
        try:
            return aliases[key]
        except KeyError:
            raise ValueError(f"Unknown person type: {text}") from None


class CalculationBase(str, Enum):
    """Accrual convention: calendar months or days over a 360-day year."""

    MONTHLY = "Monthly"
    DAILY = "Daily"

    @property
    def duration_unit(self) -> str:
        return "Months" if self is CalculationBase.MONTHLY else "Days"

    @property
    def divisor(self) -> Decimal:
        return Decimal(12) if self is CalculationBase.MONTHLY else Decimal(360)

    @classmethod
    def parse(cls, text: str) -> "CalculationBase":
        key = text.strip().lower()
        if key in ("monthly", "mensuel", "months"):
            return cls.MONTHLY
        if key in ("daily", "journalier", "days"):
            return cls.DAILY
        raise ValueError(f"Unknown calculation base: {text}")


@dataclass(frozen=True)
class Injection:
    """A capital injection into the current account.

    Attributes
    ----------
    id: str
        Opaque identifier, unique within a configuration.
    month, year: int
        Calendar month of the injection. Interest starts on the first day of
        that month.
    amount: Decimal
        Total amount injected.
    pct_part1: Decimal
        Share of the amount (0-100) attributed to part 1. Part 2 always gets
        the remainder, see ``pct_part2``.
    type_part1, type_part2: PersonType
        Classification of each part, which selects its withholding rate.
    """

    id: str
    month: int
    year: int
    amount: Decimal
    pct_part1: Decimal = DEFAULT_PCT_PART1
    type_part1: PersonType = PersonType.MORAL
    type_part2: PersonType = PersonType.NATURAL

    @property
    def pct_part2(self) -> Decimal:
        return HUNDRED - self.pct_part1

    @property
    def injection_date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def label(self) -> str:
        return f"{self.month}/{self.year}"


class InjectionBook:
    """Ordered collection of injections addressed by their id.

    Records are never mutated in place: ``replace`` swaps in a new
    ``Injection`` so that a tuple returned by ``snapshot`` stays valid while a
    calculation is running on it.
    """

    def __init__(self, injections: Optional[List[Injection]] = None) -> None:
        self._records: Dict[str, Injection] = {}
        for injection in injections or []:
            self.add(injection)

    def __iter__(self) -> Iterator[Injection]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, injection_id: object) -> bool:
        return injection_id in self._records

    def add(self, injection: Injection) -> Injection:
        if injection.id in self._records:
            raise ValueError(f"Duplicate injection id: {injection.id}")
        self._records[injection.id] = injection
        return injection

    def add_following(
        self,
        amount: Decimal,
        injection_id: Optional[str] = None,
        pct_part1: Decimal = DEFAULT_PCT_PART1,
        type_part1: Optional[PersonType] = None,
        type_part2: Optional[PersonType] = None,
    ) -> Injection:
        """Append an injection dated one month after the last record.

        The new record gets the split passed in, the default 80 % Moral /
        Natural split when none is given; in the global split mode callers
        pass the global split. An empty book starts at January 2025.
        """
        records = list(self._records.values())
        if records:
            next_date = add_months(records[-1].injection_date, 1)
        else:
            next_date = date(2025, 1, 1)
        new_id = injection_id or f"inj-{len(records) + 1}"
        while new_id in self._records:
            new_id = f"{new_id}-1"
        return self.add(
            Injection(
                id=new_id,
                month=next_date.month,
                year=next_date.year,
                amount=amount,
                pct_part1=pct_part1,
                type_part1=type_part1 or PersonType.MORAL,
                type_part2=type_part2 or PersonType.NATURAL,
            )
        )

    def get(self, injection_id: str) -> Injection:
        return self._records[injection_id]

    def replace(self, injection_id: str, **changes) -> Injection:
        """Replace the record with ``injection_id`` by a copy carrying ``changes``."""
        current = self._records[injection_id]
        if "id" in changes and changes["id"] != injection_id:
            raise ValueError("Injection id cannot be changed")
        updated = dataclasses.replace(current, **changes)
        self._records[injection_id] = updated
        return updated

    def remove(self, injection_id: str) -> Injection:
        return self._records.pop(injection_id)

    def apply_global_split(
        self, pct_part1: Decimal, type_part1: PersonType, type_part2: PersonType
    ) -> None:
        """Give every injection the same split (the "global" split mode)."""
        for injection_id in list(self._records):
            self.replace(
                injection_id,
                pct_part1=pct_part1,
                type_part1=type_part1,
                type_part2=type_part2,
            )

    def snapshot(self) -> Tuple[Injection, ...]:
        return tuple(self._records.values())


@dataclass(frozen=True)
class CCAConfig:
    """Complete input of a calculation run. Rates are expressed in percent."""

    injections: Tuple[Injection, ...]
    annual_rate: Decimal = DEFAULT_ANNUAL_RATE
    vat_rate: Decimal = DEFAULT_VAT_RATE
    withholding_moral_rate: Decimal = DEFAULT_WITHHOLDING_MORAL_RATE
    withholding_natural_rate: Decimal = DEFAULT_WITHHOLDING_NATURAL_RATE
    end_date: date = DEFAULT_END_DATE
    calculation_base: CalculationBase = CalculationBase.MONTHLY

    def withholding_rate_for(self, person_type: PersonType) -> Decimal:
        if person_type is PersonType.MORAL:
            return self.withholding_moral_rate
        if person_type is PersonType.NATURAL:
            return self.withholding_natural_rate
        raise ValueError(f"Unsupported person type: {person_type!r}")

    def rates(self) -> Dict[str, object]:
        """Return the constants an exporter needs to rebuild the arithmetic."""
        return {
            "annual_rate": self.annual_rate,
            "vat_rate": self.vat_rate,
            "withholding_moral_rate": self.withholding_moral_rate,
            "withholding_natural_rate": self.withholding_natural_rate,
            "calculation_base": self.calculation_base.value,
            "end_date": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class PartResult:
    """Interest and tax figures for one beneficiary part of an injection."""

    amount: Decimal
    pct: Decimal
    person_type: PersonType
    interest_ht: Decimal
    vat: Decimal
    withholding_rate: Decimal  # percent
    withholding: Decimal
    interest_ttc: Decimal
    net: Decimal


@dataclass(frozen=True)
class PeriodResult:
    """Breakdown for one injection over its whole accrual duration."""

    id: str
    label: str
    injection_date: date
    amount_total: Decimal
    duration_value: int
    duration_unit: str
    part1: PartResult
    part2: PartResult

    @property
    def interest_ht(self) -> Decimal:
        return self.part1.interest_ht + self.part2.interest_ht

    @property
    def vat(self) -> Decimal:
        return self.part1.vat + self.part2.vat

    @property
    def interest_ttc(self) -> Decimal:
        return self.part1.interest_ttc + self.part2.interest_ttc

    @property
    def withholding(self) -> Decimal:
        return self.part1.withholding + self.part2.withholding

    @property
    def net(self) -> Decimal:
        return self.part1.net + self.part2.net


@dataclass(frozen=True)
class MonthlyAccrual:
    """Interest accrued during a single calendar month across all injections."""

    month: int
    year: int
    label: str
    active_capital: Decimal
    interest_ht: Decimal
    vat: Decimal
    withholding: Decimal
    net: Decimal


ZERO = Decimal("0")


@dataclass(frozen=True)
class FinancialSummary:
    """Totals over a set of period results.

    Summaries form a monoid under ``+`` with the default (all-zero) instance
    as identity, so folding order does not matter.
    """

    total_capital: Decimal = ZERO
    total_interest_ht: Decimal = ZERO
    total_interest_ht1: Decimal = ZERO
    total_interest_ht2: Decimal = ZERO
    total_interest_ttc: Decimal = ZERO
    total_vat: Decimal = ZERO
    total_withholding: Decimal = ZERO
    total_withholding1: Decimal = ZERO
    total_withholding2: Decimal = ZERO
    net_total: Decimal = ZERO
    total_repayment: Decimal = ZERO

    @classmethod
    def from_result(cls, result: PeriodResult) -> "FinancialSummary":
        return cls(
            total_capital=result.amount_total,
            total_interest_ht=result.interest_ht,
            total_interest_ht1=result.part1.interest_ht,
            total_interest_ht2=result.part2.interest_ht,
            total_interest_ttc=result.interest_ttc,
            total_vat=result.vat,
            total_withholding=result.withholding,
            total_withholding1=result.part1.withholding,
            total_withholding2=result.part2.withholding,
            net_total=result.net,
            total_repayment=result.amount_total + result.interest_ttc,
        )

    def __add__(self, other: "FinancialSummary") -> "FinancialSummary":
        if not isinstance(other, FinancialSummary):
            return NotImplemented
        return FinancialSummary(
            **{
                f.name: getattr(self, f.name) + getattr(other, f.name)
                for f in dataclasses.fields(self)
            }
        )

    def as_dict(self) -> Dict[str, float]:
        return {f.name: float(getattr(self, f.name)) for f in dataclasses.fields(self)}


@dataclass(frozen=True)
class SimulationReport:
    """Everything a renderer or exporter needs from one calculation run."""

    config: CCAConfig
    results: List[PeriodResult] = field(default_factory=list)
    accruals: List[MonthlyAccrual] = field(default_factory=list)
    summary: FinancialSummary = field(default_factory=FinancialSummary)

    @property
    def rates(self) -> Dict[str, object]:
        return self.config.rates()
