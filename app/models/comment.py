from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Index, event, inspect
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.article import utcnow


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    # Registered author; anonymous comments carry author/email instead
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    author = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    parent_comment_id = Column(Integer, ForeignKey("comments.id"), nullable=True, index=True)
    is_approved = Column(Boolean, nullable=False, default=True, index=True)
    likes_count = Column(Integer, nullable=False, default=0)
    is_edited = Column(Boolean, nullable=False, default=False)
    edited_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    article = relationship("Article")
    user = relationship("User")

    __table_args__ = (Index("ix_comments_article_created", "article_id", "created_at"),)

    @property
    def is_reply(self) -> bool:
        return self.parent_comment_id is not None


@event.listens_for(Comment, "before_update")
def mark_edited(mapper, connection, target):
    # Only fires for rows that already exist, so the creation write is never flagged
    if inspect(target).attrs.content.history.has_changes():
        target.is_edited = True
        target.edited_at = utcnow()
