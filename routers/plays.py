from typing import Dict, List
from fastapi import APIRouter, HTTPException, Query, status
import logging

from cache import cache_response, clear_cache
from core.config import get_settings
from dependencies import ServiceDep
from models import PlayEventCreate, PlayRecordResult, TrendingEntry

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def parse_token_ids(token_ids: str) -> List[int]:
    try:
        ids = [int(part) for part in token_ids.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail="token_ids must be a comma separated list of integers")
    if not ids:
        raise HTTPException(status_code=400, detail="token_ids cannot be empty")
    return ids


@router.get("/trending", response_model=List[TrendingEntry])
@cache_response()
async def get_trending(
    service: ServiceDep,
    limit: int = Query(settings.TRENDING_LIMIT, ge=1, le=settings.MAX_PAGE_SIZE),
    window_days: int = Query(settings.TRENDING_WINDOW_DAYS, ge=1, le=365),
):
    """Items ranked by play activity over the trailing window"""
    return await service.get_trending(limit, window_days)


@router.get("/plays/counts", response_model=Dict[int, int])
async def get_play_counts(service: ServiceDep, token_ids: str):
    return await service.play_counts(parse_token_ids(token_ids))


@router.get("/plays/best")
async def get_best_in_album(service: ServiceDep, token_ids: str):
    """Most played track of an album; the first listed track wins ties"""
    best = await service.best_in_album(parse_token_ids(token_ids))
    if best is None:
        raise HTTPException(status_code=404, detail="No tracks given")
    return best


@router.post("/plays", response_model=PlayRecordResult, status_code=status.HTTP_201_CREATED)
async def record_play(play: PlayEventCreate, service: ServiceDep):
    """Record a play, at most once per listener, item and day"""
    result = await service.record_play(play)
    if result.recorded:
        clear_cache()
    return result
