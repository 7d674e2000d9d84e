"""Payroll allowance/deduction rules and their normalisation from JSON.

Two entry points: ``resolve_*`` is lenient (drops malformed rules, falls back
to defaults) and is used whenever config is read; ``validate_payroll_config``
is strict and is used when an administrator saves config or an override.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from ..core.constants import (
    DEFAULT_ALLOWANCE_NAME,
    DEFAULT_ALLOWANCE_PERCENT,
    DEFAULT_DEDUCTION_NAME,
    DEFAULT_DEDUCTION_PERCENT,
)
from ..core.enums import RuleType
from ..core.exceptions import ValidationError
from ..leave.policy import as_mapping, finite_number, load_json_object

MAX_RULES_PER_LIST = 50
MAX_RULE_NAME_LENGTH = 120


@dataclass(frozen=True)
class PayrollRule:
    name: str
    type: RuleType
    value: Decimal


@dataclass(frozen=True)
class PayrollConfig:
    allowances: tuple[PayrollRule, ...]
    deductions: tuple[PayrollRule, ...]

    @property
    def is_empty(self) -> bool:
        return not self.allowances and not self.deductions


DEFAULT_ALLOWANCE_RULE = PayrollRule(DEFAULT_ALLOWANCE_NAME, RuleType.PERCENTAGE, Decimal(DEFAULT_ALLOWANCE_PERCENT))
DEFAULT_DEDUCTION_RULE = PayrollRule(DEFAULT_DEDUCTION_NAME, RuleType.PERCENTAGE, Decimal(DEFAULT_DEDUCTION_PERCENT))
DEFAULT_PAYROLL_CONFIG = PayrollConfig(allowances=(DEFAULT_ALLOWANCE_RULE,), deductions=(DEFAULT_DEDUCTION_RULE,))


def _parse_rule(item: Any) -> Optional[PayrollRule]:
    item = as_mapping(item)
    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    try:
        rule_type = RuleType(item.get("type"))
    except ValueError:
        return None
    value = finite_number(item.get("value"))
    if value is None or value < 0:
        return None
    return PayrollRule(name=name.strip()[:MAX_RULE_NAME_LENGTH], type=rule_type, value=Decimal(str(value)))


def parse_rules(raw: Any) -> tuple[PayrollRule, ...]:
    if not isinstance(raw, list):
        return ()
    rules = (_parse_rule(item) for item in raw[:MAX_RULES_PER_LIST])
    return tuple(r for r in rules if r is not None)


def resolve_payroll_config(raw: Any) -> PayrollConfig:
    """Organisation default; each empty list falls back to its default rule."""
    root = load_json_object(raw)
    allowances = parse_rules(root.get("allowances"))
    deductions = parse_rules(root.get("deductions"))
    return PayrollConfig(
        allowances=allowances or DEFAULT_PAYROLL_CONFIG.allowances,
        deductions=deductions or DEFAULT_PAYROLL_CONFIG.deductions,
    )


def resolve_override(raw: Any) -> Optional[PayrollConfig]:
    """Per-employee override, or None when it has no valid rule at all.

    The lists of a usable override are taken literally: an override that only
    lists allowances means no deductions for that period.
    """
    if raw is None:
        return None
    root = load_json_object(raw)
    config = PayrollConfig(
        allowances=parse_rules(root.get("allowances")),
        deductions=parse_rules(root.get("deductions")),
    )
    return None if config.is_empty else config


def validate_payroll_config(raw: Any, *, require_rules: bool = False) -> PayrollConfig:
    root = load_json_object(raw)
    if not root:
        raise ValidationError("Payroll config must be a JSON object")

    lists: dict[str, tuple[PayrollRule, ...]] = {}
    for key in ("allowances", "deductions"):
        items = root.get(key, [])
        if not isinstance(items, list):
            raise ValidationError(f"{key} must be a list")
        if len(items) > MAX_RULES_PER_LIST:
            raise ValidationError(f"{key} accepts at most {MAX_RULES_PER_LIST} rules")
        parsed = []
        for index, item in enumerate(items):
            rule = _parse_rule(item)
            if rule is None:
                raise ValidationError(
                    f"{key}[{index}] must be {{name, type: fixed|percentage, value >= 0}}"
                )
            parsed.append(rule)
        lists[key] = tuple(parsed)

    config = PayrollConfig(allowances=lists["allowances"], deductions=lists["deductions"])
    if require_rules and config.is_empty:
        raise ValidationError("At least one allowance or deduction rule is required")
    return config


def payroll_config_to_json(config: PayrollConfig) -> dict:
    def _rules(rules):
        return [{"name": r.name, "type": r.type.value, "value": float(r.value)} for r in rules]

    return {"allowances": _rules(config.allowances), "deductions": _rules(config.deductions)}
