from fastapi import APIRouter, HTTPException, status
import logging

from cache import clear_cache
from dependencies import ServiceDep
from models import InteractionCreate, PostCreate, PostDelete, RecordWriteResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/interactions", response_model=RecordWriteResponse, status_code=status.HTTP_201_CREATED)
async def write_interaction(interaction: InteractionCreate, service: ServiceDep):
    """Validate an interaction and append it to the publisher's log"""
    response = service.write_interaction(interaction)
    clear_cache()
    return response


@router.post("/posts", response_model=RecordWriteResponse, status_code=status.HTTP_201_CREATED)
async def write_post(post: PostCreate, service: ServiceDep):
    response = service.write_post(post)
    clear_cache()
    return response


@router.delete("/posts/{post_id}", response_model=RecordWriteResponse)
async def delete_post(post_id: int, data: PostDelete, service: ServiceDep):
    """Publish a deleted version of a post"""
    response = await service.delete_post(post_id, data)
    if response is None:
        raise HTTPException(status_code=404, detail="Post not found")
    clear_cache()
    return response
