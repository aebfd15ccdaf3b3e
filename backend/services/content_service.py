# backend/services/content_service.py
import logging
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select
from errors import InvalidInput, NotFound
from models import VALID_CONTENT_TYPES, Content, ContentType, Tag, utcnow

logger = logging.getLogger(__name__)


def validate_type(value: Any) -> ContentType:
    if value not in VALID_CONTENT_TYPES:
        raise InvalidInput("Invalid content type")
    return ContentType(value)


def _contains_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def find_tag(session: AsyncSession, title: str, user_id: int) -> Optional[Tag]:
    result = await session.execute(select(Tag).where(Tag.title == title, Tag.userId == user_id))
    return result.scalar_one_or_none()


async def resolve_tag(session: AsyncSession, title: str, user_id: int) -> int:
    """Find-or-create a tag owned by user_id and return its id."""
    tag = await find_tag(session, title, user_id)
    if tag is not None:
        return tag.id
    tag = Tag(title=title, userId=user_id)
    session.add(tag)
    try:
        await session.commit()
    except IntegrityError:
        # another request created the same (title, userId) between our lookup and insert
        await session.rollback()
        tag = await find_tag(session, title, user_id)
        if tag is None:
            raise
    return tag.id


async def resolve_tag_ids(session: AsyncSession, titles: Iterable[str], user_id: int) -> List[int]:
    tag_ids: List[int] = []
    for title in titles:
        tag_id = await resolve_tag(session, title, user_id)
        if tag_id not in tag_ids:
            tag_ids.append(tag_id)
    return tag_ids


async def _load_tags(session: AsyncSession, tag_ids: List[int]) -> List[Tag]:
    if not tag_ids:
        return []
    result = await session.execute(select(Tag).where(col(Tag.id).in_(tag_ids)))
    by_id = {tag.id: tag for tag in result.scalars().all()}
    return [by_id[tag_id] for tag_id in tag_ids if tag_id in by_id]


async def get_owned_content(session: AsyncSession, content_id: int, user_id: int) -> Content:
    statement = (
        select(Content)
        .where(Content.id == content_id, Content.userId == user_id)
        .execution_options(populate_existing=True)
    )
    content = (await session.execute(statement)).scalar_one_or_none()
    if content is None:
        raise NotFound("Content not found")
    return content


async def create_content(
    session: AsyncSession,
    user_id: int,
    title: Optional[str],
    type_: Optional[str],
    description: Optional[str] = None,
    link: Optional[str] = None,
    image: Optional[str] = None,
    tag_titles: Optional[List[str]] = None,
) -> Content:
    if not title or not type_:
        raise InvalidInput("Title and type are required")
    content_type = validate_type(type_)

    tag_ids = await resolve_tag_ids(session, tag_titles or [], user_id)
    content = Content(
        title=title, description=description or "", type=content_type,
        link=link or "", image=image or "", userId=user_id,
    )
    content.tags = await _load_tags(session, tag_ids)
    session.add(content)
    await session.commit()
    logger.info("Content %s created for user %s", content.id, user_id)
    return await get_owned_content(session, content.id, user_id)


async def update_content(
    session: AsyncSession,
    user_id: int,
    content_id: int,
    changes: Dict[str, Any],
    tag_titles: Optional[List[str]] = None,
) -> Content:
    """Apply a partial update.

    `changes` holds only the fields the caller actually supplied; anything
    absent keeps its stored value. `tag_titles`, when not None, replaces the
    whole tag set.
    """
    content = await get_owned_content(session, content_id, user_id)

    changes = dict(changes)
    if "type" in changes:
        changes["type"] = validate_type(changes["type"])
    if "title" in changes and not changes["title"]:
        raise InvalidInput("Title cannot be empty")

    tags = None
    if tag_titles is not None:
        tag_ids = await resolve_tag_ids(session, tag_titles, user_id)
        tags = await _load_tags(session, tag_ids)
        # a rolled back tag insert expires everything held by the session
        content = await get_owned_content(session, content_id, user_id)

    for field, value in changes.items():
        setattr(content, field, value)
    if tags is not None:
        content.tags = tags
    content.updatedAt = utcnow()
    session.add(content)
    await session.commit()
    return await get_owned_content(session, content_id, user_id)


async def delete_content(session: AsyncSession, user_id: int, content_id: int):
    content = await get_owned_content(session, content_id, user_id)
    await session.delete(content)
    await session.commit()
    logger.info("Content %s deleted for user %s", content_id, user_id)


async def list_content(session: AsyncSession, user_id: int) -> List[Content]:
    result = await session.execute(select(Content).where(Content.userId == user_id).order_by(col(Content.id)))
    return list(result.scalars().all())


async def list_content_by_type(session: AsyncSession, user_id: int, type_: str) -> List[Content]:
    content_type = validate_type(type_)
    statement = select(Content).where(Content.userId == user_id, Content.type == content_type).order_by(col(Content.id))
    result = await session.execute(statement)
    return list(result.scalars().all())


async def search_content(session: AsyncSession, user_id: int, query: Optional[str]) -> List[Content]:
    if not query:
        raise InvalidInput("Search query is required")
    pattern = _contains_pattern(query)
    tag_match = Content.tags.any(and_(col(Tag.title).ilike(pattern, escape="\\"), Tag.userId == user_id))
    statement = (
        select(Content)
        .where(Content.userId == user_id, or_(col(Content.title).ilike(pattern, escape="\\"), tag_match))
        .order_by(col(Content.id))
    )
    result = await session.execute(statement)
    return list(result.scalars().all())
