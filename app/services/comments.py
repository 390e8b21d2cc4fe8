from sqlalchemy.orm import Session, joinedload

from app.config import COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH
from app.errors import InvalidActionError, NotFoundError, ValidationError
from app.models.article import Article
from app.models.comment import Comment
from app.models.user import User
from app.services.counters import recount_article_comments
from app.services.pagination import paginate

MODERATION_ACTIONS = ("approve", "disapprove")


def get_comment(db: Session, comment_id: str | int, approved_only: bool = False) -> Comment:
    """Fetch a comment by store id. Anything that is not a numeric id is simply not found."""
    raw = str(comment_id).strip()
    if not raw.isdigit():
        raise NotFoundError("Comment not found")

    query = db.query(Comment).filter(Comment.id == int(raw))
    if approved_only:
        query = query.filter(Comment.is_approved.is_(True))
    comment = query.first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def _check_content(content: str) -> str:
    content = (content or "").strip()
    if not COMMENT_MIN_LENGTH <= len(content) <= COMMENT_MAX_LENGTH:
        message = f"Comment must be between {COMMENT_MIN_LENGTH} and {COMMENT_MAX_LENGTH} characters"
        raise ValidationError(message, errors=[{"field": "content", "message": message}])
    return content


def create_comment(
    db: Session,
    article: Article,
    content: str,
    parent_comment_id: int | None = None,
    user: User | None = None,
    author: str | None = None,
    email: str | None = None,
) -> Comment:
    """
    Add a top-level comment or a reply.

    A reply's parent must exist, be approved and belong to the same article.
    Authenticated callers always comment under their account's name and email.
    """
    content = _check_content(content)

    if parent_comment_id is not None:
        parent = (
            db.query(Comment)
            .filter(
                Comment.id == parent_comment_id,
                Comment.article_id == article.id,
                Comment.is_approved.is_(True),
            )
            .first()
        )
        if not parent:
            raise NotFoundError("Parent comment not found")

    comment = Comment(
        article_id=article.id,
        content=content,
        parent_comment_id=parent_comment_id,
    )

    if user is not None:
        comment.user_id = user.id
        comment.author = user.name
        comment.email = user.email
    else:
        author = (author or "").strip()
        email = (email or "").strip().lower()
        if not author or not email:
            raise ValidationError(
                "Author and email are required for anonymous comments",
                errors=[
                    {"field": field, "message": f"{field} is required"}
                    for field, value in (("author", author), ("email", email))
                    if not value
                ],
            )
        if len(author) > 100:
            raise ValidationError(
                "Author name is too long",
                errors=[{"field": "author", "message": "Author name cannot exceed 100 characters"}],
            )
        comment.author = author
        comment.email = email

    db.add(comment)
    db.commit()
    recount_article_comments(db, article.id)
    db.refresh(comment)
    return comment


def approved_replies(db: Session, comment_id: int):
    return db.query(Comment).filter(
        Comment.parent_comment_id == comment_id,
        Comment.is_approved.is_(True),
    )


def list_article_comments(db: Session, article: Article, page: int = 1, limit: int = 20):
    """Approved top-level comments, newest first. Returns (comments, total)."""
    query = (
        db.query(Comment)
        .options(joinedload(Comment.user))
        .filter(
            Comment.article_id == article.id,
            Comment.parent_comment_id.is_(None),
            Comment.is_approved.is_(True),
        )
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return paginate(query, page, limit)


def replies_by_parent(db: Session, parent_ids: list[int]) -> dict[int, list[Comment]]:
    """Approved replies for several parents at once, oldest first."""
    grouped = {pid: [] for pid in parent_ids}
    if not parent_ids:
        return grouped

    rows = (
        db.query(Comment)
        .options(joinedload(Comment.user))
        .filter(Comment.parent_comment_id.in_(parent_ids), Comment.is_approved.is_(True))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
    for reply in rows:
        grouped[reply.parent_comment_id].append(reply)
    return grouped


def list_replies(db: Session, comment: Comment, page: int = 1, limit: int = 10):
    """Approved replies to a comment in chronological order. Returns (replies, total)."""
    query = (
        approved_replies(db, comment.id)
        .options(joinedload(Comment.user))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return paginate(query, page, limit)


def list_recent_comments(db: Session, page: int = 1, limit: int = 10):
    query = (
        db.query(Comment)
        .options(joinedload(Comment.article), joinedload(Comment.user))
        .filter(Comment.is_approved.is_(True))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return paginate(query, page, limit)


def list_user_comments(db: Session, user_id: int, page: int = 1, limit: int = 20):
    query = (
        db.query(Comment)
        .options(joinedload(Comment.article))
        .filter(Comment.user_id == user_id, Comment.is_approved.is_(True))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return paginate(query, page, limit)


def edit_comment(db: Session, comment: Comment, content: str) -> Comment:
    comment.content = _check_content(content)
    db.commit()
    recount_article_comments(db, comment.article_id)
    db.refresh(comment)
    return comment


def moderate_comment(db: Session, comment: Comment, action: str) -> Comment:
    if action not in MODERATION_ACTIONS:
        raise InvalidActionError(MODERATION_ACTIONS)

    comment.is_approved = action == "approve"
    db.commit()
    recount_article_comments(db, comment.article_id)
    db.refresh(comment)
    return comment


def _subtree_ids(db: Session, root_id: int) -> list[int]:
    ids = [root_id]
    frontier = [root_id]
    while frontier:
        children = [
            row[0]
            for row in db.query(Comment.id).filter(Comment.parent_comment_id.in_(frontier)).all()
        ]
        children = [c for c in children if c not in ids]
        ids.extend(children)
        frontier = children
    return ids


def delete_comment(db: Session, comment: Comment) -> int:
    """Delete a comment together with every reply beneath it. Returns how many rows went."""
    article_id = comment.article_id
    ids = _subtree_ids(db, comment.id)

    deleted = db.query(Comment).filter(Comment.id.in_(ids)).delete(synchronize_session=False)
    db.commit()
    recount_article_comments(db, article_id)
    return deleted

