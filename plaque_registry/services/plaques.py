"""Record query engine and lifecycle operations for plaques.

Every function takes the session it works with; nothing here holds on to a
store handle between calls.
"""
import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from plaque_registry.config import settings
from plaque_registry.models.plaque import Plaque, PlaqueStatus
from plaque_registry.schemas.plaque import Pagination, PlaqueCreate, PlaqueStatistics, PlaqueUpdate
from plaque_registry.utils.exceptions import Conflict, NotFound, StoreUnavailable, ValidationError
from plaque_registry.utils.time import to_utc_z, utc_now

logger = logging.getLogger(__name__)

DUPLICATE_PLATE_MESSAGE = "Ce numéro de plaque existe déjà"
CONFLICT_MESSAGE = "Conflit avec des données existantes"

# Largest value a signed 64-bit INTEGER column or LIMIT/OFFSET accepts.
MAX_STORE_INT = 2**63 - 1

# Wire name -> column. Only these fields can be changed after creation.
UPDATABLE_FIELDS: dict[str, str] = {
    "plateNumber": "plate_number",
    "ownerName": "owner_name",
    "ownerEmail": "owner_email",
    "ownerPhone": "owner_phone",
    "expiryDate": "expiry_date",
    "status": "status",
}

NULLABLE_COLUMNS = {"owner_phone"}

STATUS_VALUES = frozenset(s.value for s in PlaqueStatus)


def _id_in_range(plaque_id: int) -> bool:
    return -MAX_STORE_INT - 1 <= plaque_id <= MAX_STORE_INT


def _to_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ListQuery:
    page: int = 1
    limit: int = 10
    search: str | None = None
    status: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_raw(
        cls,
        page: Any = None,
        limit: Any = None,
        search: str | None = None,
        status: str | None = None,
    ) -> "ListQuery":
        """Normalize loosely-typed request values.

        Unparsable numbers fall back to their defaults, ``page`` and ``limit``
        are clamped to at least 1 and ``limit`` to at most ``max_page_size``.
        A blank search and an unknown status are dropped.
        """
        page_value = max(1, _to_int(page, 1))
        limit_value = min(max(1, _to_int(limit, settings.default_page_size)), settings.max_page_size)

        search_value = search.strip() if search else None
        status_value = status.strip().lower() if status else None
        if status_value and status_value not in STATUS_VALUES:
            logger.debug("Ignoring unknown status filter %r", status)
            status_value = None

        return cls(
            page=page_value,
            limit=limit_value,
            search=search_value or None,
            status=status_value or None,
        )


def build_predicate(query: ListQuery):
    """AND of the search and status conditions, or None when neither is set."""
    conditions = []
    if query.search:
        conditions.append(or_(
            Plaque.plate_number.icontains(query.search, autoescape=True),
            Plaque.owner_name.icontains(query.search, autoescape=True),
            Plaque.owner_email.icontains(query.search, autoescape=True),
        ))
    if query.status:
        conditions.append(Plaque.status == query.status)
    if not conditions:
        return None
    return and_(*conditions)


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


@asynccontextmanager
async def _store_guard(db: AsyncSession, action: str):
    try:
        yield
    except IntegrityError as exc:
        await db.rollback()
        logger.info("Integrity violation while %s: %s", action, exc.orig)
        if "plate_number" in str(exc.orig):
            raise Conflict(DUPLICATE_PLATE_MESSAGE, field="plateNumber") from exc
        raise Conflict(CONFLICT_MESSAGE) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Store failure while %s", action)
        raise StoreUnavailable() from exc


async def list_plaques(db: AsyncSession, query: ListQuery) -> dict:
    predicate = build_predicate(query)

    count_stmt = select(func.count()).select_from(Plaque)
    page_stmt = (
        select(Plaque)
        .order_by(Plaque.created_at.desc(), Plaque.id.desc())
        .limit(query.limit)
        .offset(query.offset)
    )
    if predicate is not None:
        count_stmt = count_stmt.where(predicate)
        page_stmt = page_stmt.where(predicate)

    # Both reads go through the session's current transaction.
    async with _store_guard(db, "listing plaques"):
        total = (await db.execute(count_stmt)).scalar_one()
        if query.offset > MAX_STORE_INT:
            records = []
        else:
            records = list((await db.execute(page_stmt)).scalars().all())

    return {
        "records": records,
        "pagination": Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=total_pages(total, query.limit),
        ),
    }


async def get_statistics(db: AsyncSession, now: datetime | None = None) -> PlaqueStatistics:
    """Aggregate counts from a single query so they share one snapshot."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(timezone.utc).date()
    # Stored expiry strings sort below the ISO date of the first excluded day.
    cutoff = (today + timedelta(days=settings.expiring_soon_days + 1)).isoformat()

    def _count_where(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    stmt = select(
        func.count(Plaque.id).label("total"),
        _count_where(Plaque.status == PlaqueStatus.ACTIVE.value).label("active"),
        _count_where(Plaque.status == PlaqueStatus.EXPIRED.value).label("expired"),
        _count_where(Plaque.status == PlaqueStatus.SUSPENDED.value).label("suspended"),
        _count_where(and_(
            Plaque.status == PlaqueStatus.ACTIVE.value,
            Plaque.expiry_date < cutoff,
        )).label("expiring_soon"),
    )

    async with _store_guard(db, "computing statistics"):
        row = (await db.execute(stmt)).one_or_none()

    if row is None:
        return PlaqueStatistics()
    return PlaqueStatistics(
        total=int(row.total or 0),
        active=int(row.active or 0),
        expired=int(row.expired or 0),
        suspended=int(row.suspended or 0),
        expiring_soon=int(row.expiring_soon or 0),
    )


async def get_plaque(db: AsyncSession, plaque_id: int) -> Plaque:
    if not _id_in_range(plaque_id):
        raise NotFound()
    async with _store_guard(db, "loading plaque"):
        plaque = await db.get(Plaque, plaque_id)
    if plaque is None:
        raise NotFound()
    return plaque


async def get_plaque_by_plate(db: AsyncSession, plate_number: str) -> Plaque:
    async with _store_guard(db, "loading plaque by plate number"):
        result = await db.execute(select(Plaque).where(Plaque.plate_number == plate_number))
        plaque = result.scalars().first()
    if plaque is None:
        raise NotFound()
    return plaque


async def _plate_taken(db: AsyncSession, plate_number: str, exclude_id: int | None = None) -> bool:
    stmt = select(Plaque.id).where(Plaque.plate_number == plate_number)
    if exclude_id is not None:
        stmt = stmt.where(Plaque.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def create_plaque(db: AsyncSession, payload: PlaqueCreate, created_by: int | None) -> Plaque:
    now = utc_now()
    expiry = payload.expiry_date or now + timedelta(days=settings.default_validity_days)

    async with _store_guard(db, "creating plaque"):
        if await _plate_taken(db, payload.plate_number):
            raise Conflict(DUPLICATE_PLATE_MESSAGE, field="plateNumber")

        stamp = to_utc_z(now)
        plaque = Plaque(
            plate_number=payload.plate_number,
            owner_name=payload.owner_name,
            owner_email=payload.owner_email,
            owner_phone=payload.owner_phone or None,
            registration_date=stamp,
            expiry_date=to_utc_z(expiry),
            status=PlaqueStatus.ACTIVE.value,
            created_by=created_by,
            created_at=stamp,
            updated_at=stamp,
        )
        db.add(plaque)
        await db.commit()
        await db.refresh(plaque)

    logger.info("Plaque %s registered (id=%s, by user %s)", plaque.plate_number, plaque.id, created_by)
    return plaque


def _validate_update(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Translate wire field names to columns and validate their values."""
    if not fields:
        raise ValidationError("Aucun champ à mettre à jour")

    for name in fields:
        if name not in UPDATABLE_FIELDS:
            raise ValidationError(f"Champ non modifiable : {name}", field=name)

    try:
        validated = PlaqueUpdate.model_validate(dict(fields))
    except SchemaValidationError as exc:
        error = exc.errors()[0]
        field = str(error["loc"][0]) if error.get("loc") else None
        raise ValidationError(f"{field}: {error['msg']}", field=field) from exc

    values: dict[str, Any] = {}
    for name, column in UPDATABLE_FIELDS.items():
        if name not in fields:
            continue
        value = getattr(validated, column)
        if value is None and column not in NULLABLE_COLUMNS:
            raise ValidationError(f"{name} ne peut pas être vide", field=name)
        if isinstance(value, datetime):
            value = to_utc_z(value)
        elif isinstance(value, PlaqueStatus):
            value = value.value
        elif column in NULLABLE_COLUMNS and value == "":
            value = None
        values[column] = value
    return values


async def apply_partial_update(db: AsyncSession, plaque_id: int, fields: Mapping[str, Any]) -> Plaque:
    values = _validate_update(fields)
    if not _id_in_range(plaque_id):
        raise NotFound()

    async with _store_guard(db, "updating plaque"):
        plaque = await db.get(Plaque, plaque_id)
        if plaque is None:
            raise NotFound()

        new_plate = values.get("plate_number")
        if new_plate is not None and new_plate != plaque.plate_number:
            if await _plate_taken(db, new_plate, exclude_id=plaque_id):
                raise Conflict(DUPLICATE_PLATE_MESSAGE, field="plateNumber")

        for column, value in values.items():
            setattr(plaque, column, value)
        plaque.updated_at = to_utc_z(utc_now())

        await db.commit()
        await db.refresh(plaque)

    logger.info("Plaque %s updated: %s", plaque_id, ", ".join(sorted(values)))
    return plaque


async def delete_plaque(db: AsyncSession, plaque_id: int) -> None:
    if not _id_in_range(plaque_id):
        raise NotFound()
    async with _store_guard(db, "deleting plaque"):
        plaque = await db.get(Plaque, plaque_id)
        if plaque is None:
            raise NotFound()
        await db.delete(plaque)
        await db.commit()
    logger.info("Plaque %s deleted", plaque_id)
