from typing import List
from fastapi import APIRouter, HTTPException
import logging

from dependencies import ServiceDep
from models import AddressListResponse, FeedPost
from services.normalizer import ADDRESS_RE

router = APIRouter()
logger = logging.getLogger(__name__)


def checked_address(address: str) -> str:
    if not ADDRESS_RE.fullmatch(address):
        raise HTTPException(status_code=400, detail="Invalid address")
    return address.lower()


@router.get("/{address}/followers", response_model=AddressListResponse)
async def get_followers(address: str, service: ServiceDep):
    address = checked_address(address)
    followers = await service.followers(address)
    return AddressListResponse(address=address, count=len(followers), addresses=followers)


@router.get("/{address}/following", response_model=AddressListResponse)
async def get_following(address: str, service: ServiceDep):
    address = checked_address(address)
    following = await service.following(address)
    return AddressListResponse(address=address, count=len(following), addresses=following)


@router.get("/{address}/following/{target}")
async def check_following(address: str, target: str, service: ServiceDep):
    """Whether ``address`` currently follows ``target``"""
    address = checked_address(address)
    target = checked_address(target)
    return {"follower": address, "target": target, "following": await service.is_following(address, target)}


@router.get("/{address}/bookmarks", response_model=List[FeedPost])
async def get_bookmarks(address: str, service: ServiceDep):
    return await service.bookmarks(checked_address(address))
