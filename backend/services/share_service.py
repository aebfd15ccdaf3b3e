# backend/services/share_service.py
import logging
import secrets
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from errors import NotFound
from models import Content, ShareLink
from services import content_service

logger = logging.getLogger(__name__)

HASH_BYTES = 6


async def create_link(session: AsyncSession, user_id: int) -> str:
    link = ShareLink(hash=secrets.token_hex(HASH_BYTES), userId=user_id)
    session.add(link)
    await session.commit()
    logger.info("Share link issued for user %s", user_id)
    return link.hash


async def resolve_link(session: AsyncSession, hash_: str) -> List[Content]:
    """Every content item of the link's owner. Holding the hash is the only check."""
    result = await session.execute(select(ShareLink).where(ShareLink.hash == hash_))
    link = result.scalar_one_or_none()
    if link is None:
        raise NotFound("Link not found")
    return await content_service.list_content(session, link.userId)
