"""Reference data lists used by the professional_info step.

The lists change only when the seeder runs, so responses are cached in
Redis for `settings.reference_cache_ttl` seconds.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalhub.config import settings
from legalhub.database import get_db
from legalhub.models.reference import Language, PracticeArea, Specialization
from legalhub.schemas.reference import ReferenceItem
from legalhub.utils.cache import cached

router = APIRouter()


async def _list(db: AsyncSession, model) -> list[ReferenceItem]:
    rows = (await db.execute(select(model).order_by(model.name))).scalars().all()
    return [ReferenceItem.model_validate(row) for row in rows]


@router.get("/practice-areas", response_model=list[ReferenceItem])
@cached(ttl=settings.reference_cache_ttl, prefix="reference")
async def list_practice_areas(db: AsyncSession = Depends(get_db)):
    return await _list(db, PracticeArea)


@router.get("/specializations", response_model=list[ReferenceItem])
@cached(ttl=settings.reference_cache_ttl, prefix="reference")
async def list_specializations(db: AsyncSession = Depends(get_db)):
    return await _list(db, Specialization)


@router.get("/languages", response_model=list[ReferenceItem])
@cached(ttl=settings.reference_cache_ttl, prefix="reference")
async def list_languages(db: AsyncSession = Depends(get_db)):
    return await _list(db, Language)
