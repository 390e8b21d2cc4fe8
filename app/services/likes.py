"""
Two independent like mechanisms live here and never touch each other:

* the anonymous counter (Article.likes_count / Comment.likes_count), driven by
  an explicit "increment" / "decrement" action with no notion of who liked;
* the identity-bound ledger (Like rows), one row per (user, article).
"""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.errors import ConflictError, ForbiddenError, InvalidActionError, NotFoundError
from app.models.article import Article
from app.models.comment import Comment
from app.models.like import Like
from app.services.counters import adjust_article_likes, adjust_comment_likes

LIKE_ACTIONS = ("increment", "decrement")


def _delta_for(action: str) -> int:
    if action not in LIKE_ACTIONS:
        raise InvalidActionError(LIKE_ACTIONS)
    return 1 if action == "increment" else -1


# --- Anonymous counter ---

def apply_article_like_action(db: Session, article: Article, action: str) -> int:
    """Adjust an article's like counter by one. Returns the new likesCount."""
    delta = _delta_for(action)
    return adjust_article_likes(db, article.id, delta)


def apply_comment_like_action(db: Session, comment: Comment, action: str) -> int:
    """Adjust an approved comment's like counter by one. Returns the new likesCount."""
    delta = _delta_for(action)
    if not comment.is_approved:
        raise ForbiddenError("Cannot like a comment that is not approved")
    return adjust_comment_likes(db, comment.id, delta)


# --- Identity-bound ledger ---

def find_like(db: Session, user_id: int, article_id: int) -> Like | None:
    return db.query(Like).filter(Like.user_id == user_id, Like.article_id == article_id).first()


def user_liked_article(db: Session, user_id: int, article_id: int) -> bool:
    return find_like(db, user_id, article_id) is not None


def _insert_like(db: Session, user_id: int, article_id: int) -> bool:
    """Insert a ledger row. Returns False when the unique constraint says it already exists."""
    db.add(Like(user_id=user_id, article_id=article_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


def toggle_article_like(db: Session, user_id: int, article: Article) -> bool:
    """
    Flip the caller's like on an article. Returns the new liked state.

    Two concurrent toggles can both see "no like" and both insert; the loser
    hits the unique constraint and the article simply stays liked.
    """
    existing = find_like(db, user_id, article.id)
    if existing:
        db.delete(existing)
        db.commit()
        return False

    if not _insert_like(db, user_id, article.id):
        print(f"⚠️ Duplicate like for user {user_id} on article {article.id}, keeping it")
    return True


def add_article_like(db: Session, user_id: int, article: Article) -> Like:
    if find_like(db, user_id, article.id) or not _insert_like(db, user_id, article.id):
        raise ConflictError("You already liked this article")
    return find_like(db, user_id, article.id)


def remove_article_like(db: Session, user_id: int, article: Article) -> None:
    deleted = (
        db.query(Like)
        .filter(Like.user_id == user_id, Like.article_id == article.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not deleted:
        raise NotFoundError("You had not liked this article")


def count_article_likes(db: Session, article_id: int) -> int:
    return db.query(func.count(Like.id)).filter(Like.article_id == article_id).scalar() or 0


def likes_for_article(db: Session, article_id: int, limit: int = 10) -> list[Like]:
    return (
        db.query(Like)
        .options(joinedload(Like.user))
        .filter(Like.article_id == article_id)
        .order_by(Like.created_at.desc(), Like.id.desc())
        .limit(limit)
        .all()
    )


def articles_liked_by(db: Session, user_id: int, limit: int = 10) -> list[Like]:
    return (
        db.query(Like)
        .options(joinedload(Like.article))
        .filter(Like.user_id == user_id)
        .order_by(Like.created_at.desc(), Like.id.desc())
        .limit(limit)
        .all()
    )


def like_stats(db: Session, user_id: int | None = None) -> dict:
    query = db.query(
        func.count(Like.id),
        func.count(func.distinct(Like.article_id)),
        func.count(func.distinct(Like.user_id)),
    )
    if user_id is not None:
        query = query.filter(Like.user_id == user_id)
    total_likes, total_articles, total_users = query.one()

    return {
        "totalLikes": total_likes or 0,
        "totalArticles": total_articles or 0,
        "totalUsers": total_users or 0,
    }
