# backend/models.py
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    video = "video"
    socialPost = "socialPost"
    Notes = "Notes"
    document = "document"


VALID_CONTENT_TYPES = {t.value for t in ContentType}


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str
    email: str = Field(unique=True, index=True)
    password: str
    isVerified: bool = Field(default=False)
    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)


class ContentTagLink(SQLModel, table=True):
    contentId: Optional[int] = Field(default=None, foreign_key="content.id", primary_key=True)
    tagId: Optional[int] = Field(default=None, foreign_key="tag.id", primary_key=True)


class Tag(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("title", "userId", name="uq_tag_title_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    userId: int = Field(foreign_key="user.id", index=True)
    createdAt: datetime = Field(default_factory=utcnow)


class Content(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = Field(default="")
    type: ContentType = Field(index=True)
    link: str = Field(default="")
    image: str = Field(default="")
    userId: int = Field(foreign_key="user.id", index=True)
    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)

    tags: List[Tag] = Relationship(link_model=ContentTagLink, sa_relationship_kwargs={"lazy": "selectin", "order_by": "Tag.id"})


class ShareLink(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    hash: str = Field(unique=True, index=True)
    userId: int = Field(foreign_key="user.id", index=True)
    createdAt: datetime = Field(default_factory=utcnow)


# --- Read models (never expose the password hash) ---
class UserRead(SQLModel):
    id: int
    username: str
    email: str
    isVerified: bool
    createdAt: datetime


class UserProfile(SQLModel):
    email: str
    username: str
    isVerified: bool


class TagRead(SQLModel):
    id: int
    title: str


class ContentRead(SQLModel):
    id: int
    title: str
    description: str
    type: ContentType
    link: str
    image: str
    userId: int
    createdAt: datetime
    updatedAt: datetime
    tags: List[TagRead] = []
