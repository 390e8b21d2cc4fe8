from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.responses import success_response
from app.config import MAX_PAGE_SIZE
from app.database import get_db
from app.dependencies import require_ownership
from app.models.user import User
from app.serializers import serialize_article_ref, serialize_article_summary, serialize_comment
from app.services import comments as comment_service
from app.services import likes as like_service
from app.services.pagination import pagination_meta

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}/likes")
def user_liked_articles(
    user_id: int,
    limit: int = Query(10, ge=1, le=50),
    caller: User = Depends(require_ownership("user_id")),
    db: Session = Depends(get_db),
):
    """Articles a user liked, newest like first - owner or admin"""
    likes = like_service.articles_liked_by(db, user_id, limit)

    return success_response({
        "likes": [
            {
                "id": like.id,
                "createdAt": like.created_at.isoformat() if like.created_at else None,
                "article": serialize_article_summary(like.article),
            }
            for like in likes
        ],
        "stats": like_service.like_stats(db, user_id),
    })


@router.get("/{user_id}/comments")
def user_comments(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    caller: User = Depends(require_ownership("user_id")),
    db: Session = Depends(get_db),
):
    comments, total = comment_service.list_user_comments(db, user_id, page, limit)

    items = []
    for c in comments:
        item = serialize_comment(c)
        item["article"] = serialize_article_ref(c.article)
        items.append(item)

    return success_response({
        "comments": items,
        "pagination": pagination_meta(page, limit, total, "totalComments"),
    })
