"""Store validator - checks a CultivationKpiStore against its invariants.

The pipeline itself is lenient (bad values coerce to 0, bad records are
skipped); the validator reports what was lenient about a given payload so
that upstream exports can be fixed.

Errors:
    - store is not a mapping of cultivation -> list
    - record is not an object, or has no name
    - strategy name repeated within one cultivation
Warnings:
    - empty cultivation
    - KPI field missing, or present but not numeric (counts as 0)
    - daily entry without a parseable date

Usage::

    from growlitics.qa.validator import StoreValidator

    result = StoreValidator().validate(store)
    assert result.passed, result.summary()
"""

from dataclasses import dataclass, field
from typing import Any

from growlitics.processor.energy import parse_date
from growlitics.schema.fields import FIELD_ALIASES, parse_numeric


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single problem found in a store."""
    severity: str       # "error" or "warning"
    cultivation: str    # "" for store-level issues
    strategy: str       # "" for cultivation-level issues
    category: str       # e.g. "shape", "duplicate_name", "non_numeric"
    message: str

    def __str__(self) -> str:
        loc = "store"
        if self.cultivation:
            loc = f"{self.cultivation!r}"
        if self.strategy:
            loc += f" / {self.strategy}"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class QAResult:
    """Aggregated result of store validation."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        """One-line summary string."""
        status = "PASS" if self.passed else "FAIL"
        return (
            f"QA {status}: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)"
        )

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

# Logical KPI -> accepted spellings.  Base revenue may be given directly or
# as its two components.
REQUIRED_FIELDS = {
    "bonus_penalty": FIELD_ALIASES["bonus_penalty"],
    "profit": FIELD_ALIASES["profit"],
    "energy_cost": FIELD_ALIASES["energy_cost"],
    "weight_achieved": FIELD_ALIASES["weight_achieved"],
    "base_revenue": ("base_revenue", "base_revenue_a", "base_revenue_b"),
}


class StoreValidator:
    """Validates a CultivationKpiStore.

    Args:
        check_fields: Also report missing/non-numeric KPI fields.
    """

    def __init__(self, check_fields: bool = True):
        self.check_fields = check_fields

    def validate(self, store: Any) -> QAResult:
        result = QAResult()
        if not isinstance(store, dict):
            self._add(result, "error", "", "", "shape",
                      f"store must be a mapping, got {type(store).__name__}")
            return result

        for cultivation, records in store.items():
            c = str(cultivation)
            if not isinstance(records, list):
                self._add(result, "error", c, "", "shape",
                          f"expected a list of records, got {type(records).__name__}")
                continue
            if not records:
                self._add(result, "warning", c, "", "empty",
                          "cultivation has no strategy records")
            self._check_records(result, c, records)
        return result

    # -------------------------------------------------------------------

    def _check_records(self, result: QAResult, cultivation: str,
                       records: list) -> None:
        seen: set[str] = set()
        for i, record in enumerate(records):
            if not isinstance(record, dict):
                self._add(result, "error", cultivation, "", "shape",
                          f"record {i} is not an object")
                continue
            name = record.get("name")
            if name is None or name == "":
                self._add(result, "error", cultivation, "", "missing_name",
                          f"record {i} has no name")
                continue
            name = str(name)
            if name in seen:
                self._add(result, "error", cultivation, name, "duplicate_name",
                          "strategy name appears more than once")
            seen.add(name)
            if self.check_fields:
                self._check_fields(result, cultivation, name, record)
            self._check_daily(result, cultivation, name, record.get("daily"))

    def _check_fields(self, result: QAResult, cultivation: str, name: str,
                      record: dict) -> None:
        for logical, aliases in REQUIRED_FIELDS.items():
            present = [k for k in aliases if record.get(k) is not None]
            if not present:
                self._add(result, "warning", cultivation, name, "missing_field",
                          f"{logical} missing (counts as 0)")
                continue
            for key in present:
                if parse_numeric(record[key]) is None:
                    self._add(result, "warning", cultivation, name, "non_numeric",
                              f"{key}={record[key]!r} is not numeric (counts as 0)")

    def _check_daily(self, result: QAResult, cultivation: str, name: str,
                     daily) -> None:
        if daily is None:
            return
        if not isinstance(daily, list):
            self._add(result, "warning", cultivation, name, "daily",
                      "daily series is not a list")
            return
        bad = sum(1 for entry in daily
                  if not isinstance(entry, dict) or parse_date(entry.get("date")) is None)
        if bad:
            self._add(result, "warning", cultivation, name, "daily",
                      f"{bad} daily entr{'y' if bad == 1 else 'ies'} without a valid date")

    @staticmethod
    def _add(result: QAResult, severity: str, cultivation: str, strategy: str,
             category: str, message: str) -> None:
        result.issues.append(Issue(severity, cultivation, strategy, category, message))


def validate_store(store: Any, check_fields: bool = True) -> QAResult:
    """Convenience wrapper around :class:`StoreValidator`."""
    return StoreValidator(check_fields=check_fields).validate(store)
