"""
Rule-expression validation for user input.

Rules are pipe-delimited strings (or lists of single rules) keyed by field:

    {"username": "bail|required|max:190|unique:users,username",
     "roles.*": "exists:roles,id"}

A "field.*" key validates every element of the list in "field". Values that
are empty (None, "" or []) are only checked by "required"; all other rules
apply to non-empty values. "bail" stops a field at its first failure and
"sometimes" skips a field that is absent from the input.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models import Base
from app.models.base import INCLUDE_DELETED

# Rules that only change how a field is evaluated; they never fail.
MODIFIER_RULES = frozenset({"bail", "sometimes", "nullable"})

_email_adapter = TypeAdapter(EmailStr)


def parse_rule(rule: str) -> tuple[str, list[str]]:
    """Split "max:190" into ("max", ["190"]). regex keeps its pattern whole."""
    if rule.startswith("regex:"):
        return "regex", [rule[len("regex:"):]]
    name, _, params = rule.partition(":")
    return name, params.split(",") if params else []


def normalize_rules(rules: str | list[str] | tuple[str, ...]) -> list[str]:
    if isinstance(rules, str):
        return [rule for rule in rules.split("|") if rule]
    return list(rules)


def _compile_regex(expression: str) -> re.Pattern[str]:
    """Compile a /pattern/flags expression."""
    if len(expression) < 2 or not expression.startswith("/"):
        return re.compile(expression)
    end = expression.rfind("/")
    pattern, flags = expression[1:end], expression[end + 1:]
    re_flags = 0
    if "i" in flags:
        re_flags |= re.IGNORECASE
    if "s" in flags:
        re_flags |= re.DOTALL
    return re.compile(pattern, re_flags)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, tuple, dict)) and len(value) == 0)


def _attribute(field: str) -> str:
    return field.replace("_", " ")


def _size(value: Any) -> float:
    if isinstance(value, (str, list, tuple, dict)):
        return len(value)
    if isinstance(value, (int, float)):
        return value
    return len(str(value))


def _unit(value: Any) -> str:
    return "items" if isinstance(value, (list, tuple)) else "characters"


class Validator:
    """Evaluates a rule set against one input mapping."""

    def __init__(self, session: Session, data: Mapping[str, Any], rules: Mapping[str, Any]) -> None:
        self.session = session
        self.data = data
        self.rules = {field: normalize_rules(expr) for field, expr in rules.items()}
        self.errors: dict[str, list[str]] = {}

    def validate(self) -> dict[str, Any]:
        """Return the validated subset of data, or raise ValidationError."""
        validated: dict[str, Any] = {}
        for field, rules in self.rules.items():
            if field.endswith(".*"):
                self._validate_items(field[:-2], rules)
                continue
            names = {parse_rule(rule)[0] for rule in rules}
            present = field in self.data
            if "sometimes" in names and not present:
                continue
            if self._validate_value(field, self.data.get(field), rules) and present:
                validated[field] = self.data[field]
        if self.errors:
            raise ValidationError(self.errors)
        return validated

    def _validate_items(self, parent: str, rules: list[str]) -> None:
        items = self.data.get(parent)
        if not isinstance(items, (list, tuple)):
            return
        for index, item in enumerate(items):
            self._validate_value(f"{parent}.{index}", item, rules)

    def _validate_value(self, field: str, value: Any, rules: list[str]) -> bool:
        parsed = [parse_rule(rule) for rule in rules]
        names = {name for name, _ in parsed}
        bail = "bail" in names
        messages: list[str] = []

        if _is_empty(value):
            if "required" in names:
                messages.append(f"The {_attribute(field)} field is required.")
        else:
            for name, params in parsed:
                if name in MODIFIER_RULES or name == "required":
                    continue
                check = getattr(self, f"_check_{name}", None)
                if check is None:
                    raise ValueError(f"Unknown validation rule: {name}")
                message = check(field, value, params)
                if message:
                    messages.append(message)
                    if bail:
                        break

        if messages:
            self.errors[field] = messages
            return False
        return True

    def _check_string(self, field: str, value: Any, params: list[str]) -> str | None:
        if not isinstance(value, str):
            return f"The {_attribute(field)} must be a string."
        return None

    def _check_array(self, field: str, value: Any, params: list[str]) -> str | None:
        if not isinstance(value, (list, tuple)):
            return f"The {_attribute(field)} must be an array."
        return None

    def _check_max(self, field: str, value: Any, params: list[str]) -> str | None:
        limit = float(params[0])
        if _size(value) > limit:
            return f"The {_attribute(field)} may not be greater than {params[0]} {_unit(value)}."
        return None

    def _check_min(self, field: str, value: Any, params: list[str]) -> str | None:
        limit = float(params[0])
        if _size(value) < limit:
            return f"The {_attribute(field)} must be at least {params[0]} {_unit(value)}."
        return None

    def _check_email(self, field: str, value: Any, params: list[str]) -> str | None:
        try:
            _email_adapter.validate_python(value)
        except PydanticValidationError:
            return f"The {_attribute(field)} must be a valid email address."
        return None

    def _check_confirmed(self, field: str, value: Any, params: list[str]) -> str | None:
        if self.data.get(f"{field}_confirmation") != value:
            return f"The {_attribute(field)} confirmation does not match."
        return None

    def _check_regex(self, field: str, value: Any, params: list[str]) -> str | None:
        if not isinstance(value, str) or not _compile_regex(params[0]).search(value):
            return f"The {_attribute(field)} format is invalid."
        return None

    def _check_unique(self, field: str, value: Any, params: list[str]) -> str | None:
        """unique:table,column[,ignore_id]; soft-deleted rows do not count."""
        table = Base.metadata.tables[params[0]]
        column = params[1] if len(params) > 1 else field
        stmt = select(func.count()).select_from(table).where(table.c[column] == value)
        if "deleted_at" in table.c:
            stmt = stmt.where(table.c.deleted_at.is_(None))
        if len(params) > 2 and params[2]:
            stmt = stmt.where(table.c.id != params[2])
        count = self.session.execute(stmt.execution_options(**{INCLUDE_DELETED: True})).scalar_one()
        if count:
            return f"The {_attribute(field)} has already been taken."
        return None

    def _check_exists(self, field: str, value: Any, params: list[str]) -> str | None:
        """exists:table,column."""
        table = Base.metadata.tables[params[0]]
        column = params[1] if len(params) > 1 else field
        stmt = select(func.count()).select_from(table).where(table.c[column] == value)
        count = self.session.execute(stmt.execution_options(**{INCLUDE_DELETED: True})).scalar_one()
        if not count:
            return f"The selected {_attribute(field)} is invalid."
        return None


def validate(session: Session, data: Mapping[str, Any], rules: Mapping[str, Any]) -> dict[str, Any]:
    """Validate data against rules; raise ValidationError with field-keyed messages."""
    return Validator(session, data, rules).validate()
