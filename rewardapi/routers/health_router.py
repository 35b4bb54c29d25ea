import logging

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.containers import Container
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
@inject
async def health_check(
    db: Session = Depends(Provide[Container.repositories.get_db]),
    mirror: LocalMirror = Depends(Provide[Container.repositories.mirror]),
) -> HealthCheckResponse:
    """Health check endpoint. Reports database and mirror reachability."""
    database_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Health check database ping failed: {e}")
        database_ok = False

    mirror_ok = mirror.ping()
    return HealthCheckResponse(
        status="healthy" if database_ok else "degraded",
        database=database_ok,
        mirror=mirror_ok,
    )
