from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any
import re

from sqlalchemy import Boolean, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta
from werkzeug.routing import IntegerConverter

from .errors import ValidationError


# Maximum price: 99,999,999.99 fits Numeric(10, 2)
MAX_PRICE = Decimal("99999999.99")

# Integer columns are 32-bit signed in PostgreSQL
MIN_INT = -(2 ** 31)
MAX_INT = 2 ** 31 - 1

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SUBDOMAIN_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - ignored_fields: accepted in the payload but dropped (handled by the route)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    ignored_fields: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Enums: accept the member value ("product") or the member itself
    if isinstance(coltype, Enum) and coltype.enum_class is not None:
        enum_class = coltype.enum_class
        if isinstance(value, enum_class):
            return value
        try:
            return enum_class(str(value).strip())
        except ValueError:
            allowed = ", ".join(m.value for m in enum_class)
            raise ValidationError(f"{col.key} must be one of: {allowed}")

    # Integers - reject floats, bools and decimal strings
    if isinstance(coltype, Integer):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "." in stripped or "e" in stripped.lower():
                raise ValidationError(f"{col.key} must be an integer")
            try:
                value = int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if not isinstance(value, int):
            raise ValidationError(f"{col.key} must be an integer")
        return require_int_range(value, col.key)

    # Decimals (money): accept numbers and numeric strings, never bools
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            dec = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not dec.is_finite():
            raise ValidationError(f"{col.key} must be a number")
        if abs(dec) > MAX_PRICE:
            raise ValidationError(f"{col.key} cannot exceed {MAX_PRICE}")
        return dec.quantize(Decimal("0.01"))

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
            return value.strip().lower() in {"true", "1"}
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k in policy.ignored_fields:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in policy.ignored_fields:
            continue
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_money_range(patch: dict, key: str, *, allow_negative: bool = False) -> None:
    value = patch.get(key)
    if value is None:
        return
    if not allow_negative and value < 0:
        raise ValidationError(f"{key} must be >= 0")
    if abs(value) > MAX_PRICE:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE}")


def enforce_rules_commerce(patch: dict) -> None:
    if "subdomain" in patch and patch["subdomain"] is not None:
        subdomain = patch["subdomain"].lower()
        if not SUBDOMAIN_RE.match(subdomain):
            raise ValidationError("subdomain may only contain lowercase letters, digits and hyphens")
        patch["subdomain"] = subdomain
    if patch.get("contact_email") and not EMAIL_RE.match(patch["contact_email"]):
        raise ValidationError("contact_email is not a valid email")
    _require_money_range(patch, "delivery_fee")
    _require_money_range(patch, "min_order_value")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _require_money_range(patch, "price")


def enforce_rules_option(patch: dict) -> None:
    if patch.get("max_selections") is not None and patch["max_selections"] < 1:
        raise ValidationError("max_selections must be >= 1")


def enforce_rules_item(patch: dict) -> None:
    # price_addition may be negative
    _require_money_range(patch, "price_addition", allow_negative=True)


def enforce_rules_tag(patch: dict) -> None:
    if patch.get("priority") is not None and patch["priority"] < 0:
        raise ValidationError("priority must be >= 0")
    _require_money_range(patch, "discount")


def validate_email(email: Any) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def require_int_range(value: int, name: str) -> int:
    if value < MIN_INT or value > MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return value


def require_id(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return require_int_range(value, name)


def query_int(value: str) -> int:
    """`type=` for request.args; out-of-range values count as absent."""
    parsed = int(value)
    if parsed < MIN_INT or parsed > MAX_INT:
        raise ValueError(value)
    return parsed


class RowIdConverter(IntegerConverter):
    """`<int:...>` URL segments capped at the largest storable id."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_INT)
        super().__init__(map, *args, **kwargs)


@dataclass(frozen=True)
class PositionUpdate:
    category_id: int
    position: int


def parse_reorder_batch(payload: Any) -> list[PositionUpdate]:
    """Parse {"categories": [{"id": 1, "position": 2}, ...]}."""
    entries = payload.get("categories") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise ValidationError("categories must be a list")

    updates: list[PositionUpdate] = []
    seen: set[int] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError("Each category must be an object with id and position")
        category_id = entry.get("id")
        position = entry.get("position")
        if isinstance(category_id, bool) or not isinstance(category_id, int) or category_id < 1:
            raise ValidationError("Each category needs a positive integer id")
        if isinstance(position, bool) or not isinstance(position, int):
            raise ValidationError("Each category needs an integer position")
        require_int_range(category_id, "id")
        require_int_range(position, "position")
        if category_id in seen:
            raise ValidationError(f"Category {category_id} appears more than once")
        seen.add(category_id)
        updates.append(PositionUpdate(category_id=category_id, position=position))
    return updates


@dataclass(frozen=True)
class ExistingItem:
    """Item already stored under the option; fields are applied in place."""
    id: int
    fields: dict


@dataclass(frozen=True)
class NewItem:
    fields: dict


def parse_option_items(raw_items: Any, *, policy: ModelValidationPolicy, model) -> list[ExistingItem | NewItem]:
    """
    Classify request items once: entries carrying an id are ExistingItem,
    entries without one are NewItem.
    """
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    parsed: list[ExistingItem | NewItem] = []
    seen_ids: set[int] = set()
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        item_id = raw.get("id")
        body = {k: v for k, v in raw.items() if k != "id"}
        if item_id is None:
            fields = validate_payload(model=model, payload=body, policy=policy, partial=False)
            enforce_rules_item(fields)
            parsed.append(NewItem(fields=fields))
        else:
            item_id = require_id(item_id, "item id")
            if item_id in seen_ids:
                raise ValidationError(f"Item {item_id} appears more than once")
            seen_ids.add(item_id)
            fields = validate_payload(model=model, payload=body, policy=policy, partial=True)
            enforce_rules_item(fields)
            parsed.append(ExistingItem(id=item_id, fields=fields))
    return parsed
