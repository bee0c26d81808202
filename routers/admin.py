from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
import logging

from cache import clear_cache as clear_response_cache
from dependencies import ServiceDep
from models import BasicResponse

router = APIRouter()
logger = logging.getLogger(__name__)


class PublisherIn(BaseModel):
    address: str


@router.get("/publishers")
async def list_publishers(service: ServiceDep):
    """Writers read in every fetch round"""
    publishers = service.registry.all()
    return {"count": len(publishers), "publishers": publishers}


@router.post("/publishers", response_model=BasicResponse)
async def add_publisher(publisher: PublisherIn, service: ServiceDep):
    if publisher.address.lower() in service.registry:
        return BasicResponse(message="Publisher already registered")
    if not service.registry.add(publisher.address):
        raise HTTPException(status_code=400, detail="Invalid publisher address")
    service.invalidate()
    return BasicResponse(message="Publisher registered")


@router.post("/refresh")
async def refresh(service: ServiceDep):
    """Run a fetch round now instead of waiting for the next poll"""
    snapshot = await service.refresh()
    clear_response_cache()
    return {
        "generation": snapshot.generation,
        "interactions": len(snapshot.interactions),
        "posts": len(snapshot.posts),
        "play_events": len(snapshot.play_events),
        "rejected": snapshot.rejected,
        "writers": len(snapshot.writers),
    }


@router.post("/cache/clear", response_model=BasicResponse)
async def clear_cache():
    """Clear the Redis response cache"""
    removed = clear_response_cache()
    logger.info(f"Cache cleared, {removed} keys removed")
    return BasicResponse(message="Cache cleared successfully")
