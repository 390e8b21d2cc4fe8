from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from app.api.responses import success_response
from app.config import COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH, MAX_PAGE_SIZE
from app.database import get_db
from app.dependencies import get_current_user, get_optional_user, require_admin
from app.errors import ForbiddenError
from app.models.user import User
from app.serializers import serialize_article_ref, serialize_comment
from app.services import articles as article_service
from app.services import comments as comment_service
from app.services import likes as like_service
from app.services.pagination import pagination_meta

router = APIRouter(prefix="/api", tags=["comments"])


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    content: str = Field(..., min_length=COMMENT_MIN_LENGTH, max_length=COMMENT_MAX_LENGTH)
    parent_comment_id: int | None = Field(None, alias="parentCommentId")
    # Only read for anonymous callers
    author: str | None = Field(None, max_length=100)
    email: EmailStr | None = None


class CommentUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=COMMENT_MIN_LENGTH, max_length=COMMENT_MAX_LENGTH)


class CommentLikeRequest(BaseModel):
    action: str | None = None


class ModerationRequest(BaseModel):
    action: str | None = None


def _ensure_can_modify(comment, user: User):
    if user.role != "admin" and comment.user_id != user.id:
        raise ForbiddenError("You can only modify your own comments")


@router.get("/articles/{slug}/comments")
def get_article_comments(
    slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    include_replies: bool = Query(True, alias="includeReplies"),
    db: Session = Depends(get_db),
):
    """Approved top-level comments for an article, newest first"""
    article = article_service.resolve_article(db, slug)
    comments, total = comment_service.list_article_comments(db, article, page, limit)

    items = [serialize_comment(c) for c in comments]
    if include_replies:
        replies = comment_service.replies_by_parent(db, [c.id for c in comments])
        for item in items:
            item["replies"] = [serialize_comment(r) for r in replies[item["id"]]]
            item["replyCount"] = len(item["replies"])

    return success_response({
        "comments": items,
        "articleSlug": article.slug,
        "commentsCount": article.comments_count,
        "pagination": pagination_meta(page, limit, total, "totalComments"),
    })


@router.post("/articles/{slug}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    slug: str,
    payload: CommentCreate,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Add a comment or a reply. Authenticated callers comment as themselves."""
    article = article_service.resolve_article(db, slug)
    comment = comment_service.create_comment(
        db,
        article,
        content=payload.content,
        parent_comment_id=payload.parent_comment_id,
        user=user,
        author=payload.author,
        email=payload.email,
    )

    data = serialize_comment(comment)
    data["article"] = serialize_article_ref(article)
    return success_response({"comment": data}, "Comment added successfully")


@router.get("/comments/recent")
def recent_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    comments, total = comment_service.list_recent_comments(db, page, limit)

    items = []
    for c in comments:
        item = serialize_comment(c)
        item["article"] = serialize_article_ref(c.article)
        items.append(item)

    return success_response({
        "comments": items,
        "pagination": pagination_meta(page, limit, total, "totalComments"),
    })


@router.get("/comments/{comment_id}/replies")
def comment_replies(
    comment_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """Approved replies, oldest first"""
    parent = comment_service.get_comment(db, comment_id, approved_only=True)
    replies, total = comment_service.list_replies(db, parent, page, limit)

    return success_response({
        "replies": [serialize_comment(r) for r in replies],
        "parentCommentId": parent.id,
        "pagination": pagination_meta(page, limit, total, "totalReplies"),
    })


# --- Comment Like Endpoints ---

@router.post("/comments/{comment_id}/like")
def like_comment(comment_id: str, payload: CommentLikeRequest, db: Session = Depends(get_db)):
    """Anonymous like counter on a comment"""
    comment = comment_service.get_comment(db, comment_id)
    likes_count = like_service.apply_comment_like_action(db, comment, payload.action)

    return success_response(
        {"comment": {"id": comment.id, "likesCount": likes_count}},
        f"Like {'added' if payload.action == 'increment' else 'removed'} successfully",
    )


@router.patch("/comments/{comment_id}/moderate")
def moderate_comment(
    comment_id: str,
    payload: ModerationRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Approve or disapprove a comment - admin only"""
    comment = comment_service.get_comment(db, comment_id)
    comment = comment_service.moderate_comment(db, comment, payload.action)

    return success_response(
        {"comment": {"id": comment.id, "isApproved": comment.is_approved}},
        f"Comment {'approved' if comment.is_approved else 'disapproved'} successfully",
    )


@router.patch("/comments/{comment_id}")
def edit_comment(
    comment_id: str,
    payload: CommentUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = comment_service.get_comment(db, comment_id)
    _ensure_can_modify(comment, user)

    comment = comment_service.edit_comment(db, comment, payload.content)
    return success_response({"comment": serialize_comment(comment)}, "Comment updated successfully")


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a comment and its replies - author or admin"""
    comment = comment_service.get_comment(db, comment_id)
    _ensure_can_modify(comment, user)

    deleted = comment_service.delete_comment(db, comment)
    return success_response({"deleted": deleted}, "Comment deleted successfully")
