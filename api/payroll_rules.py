"""Payroll and subscription rules loaded from YAML."""
from __future__ import annotations
from functools import lru_cache
from pathlib import Path
import yaml


BASE_RULES_PATH = Path(__file__).parent / "rules"
RULES_PATHS = [BASE_RULES_PATH / "payroll.yaml"]  # priority from left to right

ENTRY_TYPES = ("work", "overtime", "expense")


class RulesError(Exception):
    """Raised when the rules file is missing a required section."""
    pass


@lru_cache(maxsize=1)
def _load_rules() -> dict:
    """Load and merge YAML rules from all configured paths."""
    data = {}
    for p in RULES_PATHS:
        if p.exists():
            with p.open("r", encoding="utf-8") as f:
                d = yaml.safe_load(f) or {}
                data.update(d)
    for section in ("account_codes", "plans", "xero_defaults"):
        if section not in data:
            raise RulesError(f"{section} missing in YAML")
    return data


def load_rules() -> dict:
    """Public version of _load_rules() for external use."""
    return _load_rules()


def default_account_code(entry_type: str) -> str:
    """
    Account code for a line item type (work 323, overtime/expense 322).

    Raises:
        RulesError: unknown entry_type
    """
    code = load_rules()["account_codes"].get(entry_type)
    if code is None:
        raise RulesError(f"unknown entry_type={entry_type}")
    return str(code)


def default_tax_type() -> str:
    return load_rules().get("default_tax_type", "No VAT")


def xero_defaults() -> dict:
    return dict(load_rules()["xero_defaults"])


def get_plan(plan_type: str) -> dict:
    """
    Plan limits by type.

    Raises:
        RulesError: unknown plan_type
    """
    plan = load_rules()["plans"].get(plan_type)
    if plan is None:
        raise RulesError(f"unknown plan_type={plan_type}")
    return dict(plan, type=plan_type)


def upgrade_plans() -> list[dict]:
    """Plans an organization may move to (everything except trial)."""
    return [get_plan(k) for k in load_rules()["plans"] if k != "trial"]


def notification_template(kind: str) -> dict:
    tpl = (load_rules().get("notifications") or {}).get(kind)
    if tpl is None:
        raise RulesError(f"no notification template for {kind}")
    return tpl
