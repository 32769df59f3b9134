from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from plaque_registry.database import get_db
from plaque_registry.dependencies import get_current_user, require_admin
from plaque_registry.models.plaque import Plaque
from plaque_registry.models.user import User
from plaque_registry.schemas.plaque import PlaqueCreate, PlaqueResponse
from plaque_registry.services import plaques as plaque_service
from plaque_registry.services.plaques import ListQuery
from plaque_registry.utils.response import success_response

router = APIRouter(prefix="/plaques", tags=["plaques"], dependencies=[Depends(get_current_user)])


def _serialize(plaque: Plaque) -> dict:
    return PlaqueResponse.model_validate(plaque).model_dump(by_alias=True)


@router.get("")
async def list_plaques(
    page: str | None = None,
    limit: str | None = None,
    search: str | None = None,
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    query = ListQuery.from_raw(page=page, limit=limit, search=search, status=status)
    result = await plaque_service.list_plaques(db, query)
    return success_response(data={
        "records": [_serialize(p) for p in result["records"]],
        "pagination": result["pagination"].model_dump(by_alias=True),
    })


@router.get("/stats/overview")
async def get_statistics(db: AsyncSession = Depends(get_db)):
    stats = await plaque_service.get_statistics(db)
    return success_response(data=stats.model_dump())


@router.get("/plate/{plate_number:path}")
async def get_plaque_by_plate(plate_number: str, db: AsyncSession = Depends(get_db)):
    plaque = await plaque_service.get_plaque_by_plate(db, plate_number)
    return success_response(data=_serialize(plaque))


@router.get("/{plaque_id}")
async def get_plaque(plaque_id: int, db: AsyncSession = Depends(get_db)):
    plaque = await plaque_service.get_plaque(db, plaque_id)
    return success_response(data=_serialize(plaque))


@router.post("", status_code=201)
async def create_plaque(
    payload: PlaqueCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    plaque = await plaque_service.create_plaque(db, payload, created_by=user.id)
    return success_response(data=_serialize(plaque), message="Plaque créée avec succès")


@router.put("/{plaque_id}")
async def update_plaque(
    plaque_id: int,
    fields: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    plaque = await plaque_service.apply_partial_update(db, plaque_id, fields)
    return success_response(data=_serialize(plaque), message="Plaque mise à jour avec succès")


@router.delete("/{plaque_id}", dependencies=[Depends(require_admin)])
async def delete_plaque(plaque_id: int, db: AsyncSession = Depends(get_db)):
    await plaque_service.delete_plaque(db, plaque_id)
    return success_response(message="Plaque supprimée avec succès")
