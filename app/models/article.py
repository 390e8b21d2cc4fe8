import math
import re
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, event
from sqlalchemy.orm import validates

from app.config import EXCERPT_LENGTH
from app.database import Base

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
WORDS_PER_MINUTE = 200


def utcnow():
    return datetime.now(timezone.utc)


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(300))
    author = Column(String(100), nullable=False, index=True)
    image_url = Column(String(500), default="")
    # Comma separated, lowercased: "python,fastapi"
    tags = Column(String(500), default="")
    likes_count = Column(Integer, nullable=False, default=0)
    views_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True, index=True)
    published_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @validates("slug")
    def validate_slug(self, key, value):
        value = (value or "").strip().lower()
        if not SLUG_PATTERN.match(value):
            raise ValueError("Slug may only contain lowercase letters, numbers and hyphens")
        return value

    @property
    def tag_list(self) -> list[str]:
        return [t for t in (self.tags or "").split(",") if t]

    @tag_list.setter
    def tag_list(self, values):
        cleaned = []
        for tag in values or []:
            tag = tag.strip().lower()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        self.tags = ",".join(cleaned)

    @property
    def reading_time(self) -> int:
        words = len(self.content.split(" ")) if self.content else 0
        return math.ceil(words / WORDS_PER_MINUTE)

    @property
    def url(self) -> str:
        return f"/articles/{self.slug}"


def build_excerpt(content: str) -> str:
    return content[:EXCERPT_LENGTH].strip() + "..."


@event.listens_for(Article, "before_insert")
@event.listens_for(Article, "before_update")
def fill_excerpt(mapper, connection, target):
    if not target.excerpt and target.content:
        target.excerpt = build_excerpt(target.content)
