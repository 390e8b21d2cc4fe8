"""
Denormalized counters.

likes_count / views_count are adjusted with single-statement atomic updates.
comments_count is recomputed from the comments table after every
comment-affecting write.
"""

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.article import Article
from app.models.comment import Comment


def _adjust_likes(db: Session, model, target_id: int, delta: int) -> int:
    query = db.query(model).filter(model.id == target_id)
    if delta < 0:
        # Clamp at zero: a zero counter simply matches no row
        query = query.filter(model.likes_count > 0)
    query.update({model.likes_count: model.likes_count + delta}, synchronize_session=False)
    db.commit()

    return db.query(model.likes_count).filter(model.id == target_id).scalar() or 0


def adjust_article_likes(db: Session, article_id: int, delta: int) -> int:
    """Atomically add +1/-1 to Article.likes_count. Returns the stored value."""
    return _adjust_likes(db, Article, article_id, delta)


def adjust_comment_likes(db: Session, comment_id: int, delta: int) -> int:
    """Atomically add +1/-1 to Comment.likes_count. Returns the stored value."""
    return _adjust_likes(db, Comment, comment_id, delta)


def increment_article_views(db: Session, article_id: int) -> int:
    db.query(Article).filter(Article.id == article_id).update(
        {Article.views_count: Article.views_count + 1}, synchronize_session=False
    )
    db.commit()
    return db.query(Article.views_count).filter(Article.id == article_id).scalar() or 0


def approved_comment_count(article_id: int):
    return (
        select(func.count(Comment.id))
        .where(Comment.article_id == article_id, Comment.is_approved.is_(True))
        .scalar_subquery()
    )


def recount_article_comments(db: Session, article_id: int) -> int:
    """
    Overwrite Article.comments_count with the live count of approved comments.
    Runs as one UPDATE so interleaved recounts converge on the same value.
    """
    db.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(comments_count=approved_comment_count(article_id))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return db.query(Article.comments_count).filter(Article.id == article_id).scalar() or 0


def recount_all_articles(db: Session) -> dict[int, tuple[int, int]]:
    """Recount every article. Returns {article_id: (old, new)} for the ones that drifted."""
    drifted = {}
    for article_id, old_count in db.query(Article.id, Article.comments_count).all():
        new_count = recount_article_comments(db, article_id)
        if new_count != old_count:
            drifted[article_id] = (old_count, new_count)
    return drifted
