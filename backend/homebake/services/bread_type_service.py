# backend/homebake/services/bread_type_service.py
"""
Bread Types Service

Owner-managed catalog. Prices are integers in minor currency units.
Deleting a bread type that already has batches, production or sales
deactivates it instead, so historical reports keep their names and prices.
"""
from __future__ import annotations

from ..extensions import db
from ..models import BreadType, Batch, ProductionLog, SalesLog, RemainingBread, User
from ..validation import ConflictError, ValidationError, MAX_PRICE_CENTS, require_int, require_str

BREAD_TYPE_MUTABLE_FIELDS = {"name", "size", "unit_price_cents", "is_active"}


class BreadTypeNotFoundError(LookupError):
    pass


def _parse_patch(payload: dict, *, creating: bool) -> dict:
    patch = {}
    unknown = set(payload) - BREAD_TYPE_MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    if creating or "name" in payload:
        patch["name"] = require_str(payload, "name", max_length=100)
    if "size" in payload:
        patch["size"] = require_str(payload, "size", max_length=50, required=False)
    if creating or "unit_price_cents" in payload:
        patch["unit_price_cents"] = require_int(payload, "unit_price_cents", minimum=0, maximum=MAX_PRICE_CENTS)
    if "is_active" in payload:
        if not isinstance(payload["is_active"], bool):
            raise ValidationError("is_active must be a boolean")
        patch["is_active"] = payload["is_active"]
    return patch


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(BreadType).filter(db.func.lower(BreadType.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(BreadType.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Bread type '{name}' already exists")


def list_bread_types(include_inactive: bool = False) -> list[BreadType]:
    query = db.session.query(BreadType)
    if not include_inactive:
        query = query.filter(BreadType.is_active.is_(True))
    return query.order_by(BreadType.name.asc(), BreadType.id.asc()).all()


def get_bread_type(bread_type_id: int) -> BreadType:
    bread_type = db.session.get(BreadType, bread_type_id)
    if bread_type is None:
        raise BreadTypeNotFoundError("Bread type not found")
    return bread_type


def create_bread_type(payload: dict, created_by: User) -> BreadType:
    patch = _parse_patch(payload, creating=True)
    _ensure_unique_name(patch["name"])

    bread_type = BreadType(created_by_user_id=created_by.id, **patch)
    db.session.add(bread_type)
    db.session.commit()
    return bread_type


def update_bread_type(bread_type_id: int, payload: dict) -> BreadType:
    bread_type = get_bread_type(bread_type_id)
    patch = _parse_patch(payload, creating=False)
    if "name" in patch:
        _ensure_unique_name(patch["name"], exclude_id=bread_type.id)

    for key, value in patch.items():
        setattr(bread_type, key, value)
    db.session.commit()
    return bread_type


def has_history(bread_type_id: int) -> bool:
    for model in (Batch, ProductionLog, SalesLog, RemainingBread):
        if db.session.query(model.id).filter(model.bread_type_id == bread_type_id).first() is not None:
            return True
    return False


def delete_bread_type(bread_type_id: int) -> str:
    """Returns "deleted" or "deactivated"."""
    bread_type = get_bread_type(bread_type_id)
    if has_history(bread_type.id):
        bread_type.is_active = False
        db.session.commit()
        return "deactivated"

    db.session.delete(bread_type)
    db.session.commit()
    return "deleted"


DEFAULT_BREAD_TYPES = [
    ("Family Loaf", "800g", 120000),
    ("Sliced Bread", "600g", 90000),
    ("Agege Bread", "500g", 70000),
    ("Coconut Bread", "400g", 80000),
    ("Mini Loaf", "250g", 40000),
]


def seed_default_bread_types(created_by_user_id: int | None = None) -> int:
    """Idempotent: only names not already present are created."""
    created = 0
    for name, size, price in DEFAULT_BREAD_TYPES:
        exists = db.session.query(BreadType).filter(db.func.lower(BreadType.name) == name.lower()).first()
        if exists:
            continue
        db.session.add(BreadType(
            name=name,
            size=size,
            unit_price_cents=price,
            created_by_user_id=created_by_user_id,
        ))
        created += 1
    db.session.commit()
    return created
