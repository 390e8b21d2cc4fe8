from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from app.api.responses import success_response
from app.config import MAX_PAGE_SIZE
from app.database import get_db
from app.dependencies import get_current_user, get_optional_user, require_admin
from app.models.user import User
from app.serializers import (
    serialize_article,
    serialize_article_summary,
    serialize_like,
)
from app.services import articles as article_service
from app.services import likes as like_service
from app.services.pagination import pagination_meta

router = APIRouter(prefix="/api/articles", tags=["articles"])


class ArticleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=200)
    slug: str = Field(..., pattern=r"^[a-z0-9-]+$", max_length=255)
    content: str = Field(..., min_length=50)
    excerpt: str | None = Field(None, max_length=300)
    author: str = Field(..., min_length=1, max_length=100)
    image_url: str = Field("", alias="imageUrl", max_length=500)
    tags: list[str] = Field(default_factory=list)
    is_published: bool = Field(True, alias="isPublished")

    @field_validator("tags")
    @classmethod
    def check_tags(cls, tags):
        for tag in tags:
            if len(tag.strip()) > 30:
                raise ValueError("Each tag cannot exceed 30 characters")
        return tags


class ImageUpdate(BaseModel):
    image_url: str = Field(..., alias="imageUrl", min_length=1, max_length=500)


class LikeActionRequest(BaseModel):
    action: str | None = None


def _article_page(items, total, page, limit, total_key="totalArticles"):
    return {
        "articles": [serialize_article_summary(a) for a in items],
        "pagination": pagination_meta(page, limit, total, total_key),
    }


@router.get("")
def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = None,
    tag: str | None = None,
    author: str | None = None,
    sort_by: str = Query("publishedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """Published articles with optional filters and pagination"""
    items, total = article_service.list_articles(
        db, page, limit, search=search, tag=tag, author=author,
        sort_by=sort_by, sort_order=sort_order,
    )
    return success_response(_article_page(items, total, page, limit))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_article(
    payload: ArticleCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a new article - admin only"""
    article = article_service.create_article(
        db,
        title=payload.title,
        slug=payload.slug,
        content=payload.content,
        excerpt=payload.excerpt or None,
        author=payload.author,
        image_url=payload.image_url,
        tags=payload.tags,
        is_published=payload.is_published,
    )
    return success_response({"article": serialize_article(article)}, "Article created successfully")


@router.get("/search")
def search_articles(
    q: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    sort_by: str = Query("publishedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    term, items, total = article_service.search_articles(db, q, page, limit, sort_by, sort_order)
    data = _article_page(items, total, page, limit, total_key="totalResults")
    data["searchTerm"] = term
    return success_response(data)


@router.get("/popular")
def popular_articles(limit: int = Query(5, ge=1, le=50), db: Session = Depends(get_db)):
    articles = article_service.popular_articles(db, limit)
    return success_response({"articles": [serialize_article_summary(a) for a in articles]})


@router.get("/tags")
def all_tags(db: Session = Depends(get_db)):
    return success_response({"tags": article_service.all_tags(db)})


@router.get("/stats")
def blog_stats(db: Session = Depends(get_db)):
    return success_response({"stats": article_service.blog_stats(db)})


@router.get("/tag/{tag}")
def articles_by_tag(
    tag: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    sort_by: str = Query("publishedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    items, total = article_service.list_articles(
        db, page, limit, tag=tag, sort_by=sort_by, sort_order=sort_order
    )
    data = _article_page(items, total, page, limit)
    data["tag"] = tag.strip().lower()
    return success_response(data)


@router.get("/{slug}")
def get_article(
    slug: str,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Get a single article by slug. Every call counts as a view."""
    article = article_service.view_article(db, slug)

    user_liked = False
    if user is not None:
        user_liked = like_service.user_liked_article(db, user.id, article.id)

    return success_response({"article": serialize_article(article), "userLiked": user_liked})


@router.patch("/{slug}/image")
def update_article_image(
    slug: str,
    payload: ImageUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    article = article_service.update_article_image(db, slug, payload.image_url)
    return success_response(
        {"article": {"slug": article.slug, "title": article.title, "imageUrl": article.image_url}},
        "Article image updated successfully",
    )


# --- Like Endpoints ---

@router.post("/{slug}/like")
def like_counter(slug: str, payload: LikeActionRequest, db: Session = Depends(get_db)):
    """Anonymous like counter: {"action": "increment" | "decrement"}"""
    article = article_service.resolve_article(db, slug)
    likes_count = like_service.apply_article_like_action(db, article, payload.action)

    return success_response(
        {
            "liked": payload.action == "increment",
            "likesCount": likes_count,
            "action": payload.action,
        },
        f"Like {'added' if payload.action == 'increment' else 'removed'} successfully",
    )


@router.get("/{slug}/likes")
def article_likes(
    slug: str,
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Users who liked an article (identity ledger)"""
    article = article_service.resolve_article(db, slug, published_only=False)
    likes = like_service.likes_for_article(db, article.id, limit)

    return success_response({
        "likes": [serialize_like(like) for like in likes],
        "totalLikes": like_service.count_article_likes(db, article.id),
    })


@router.post("/{slug}/likes")
def toggle_user_like(
    slug: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Toggle the caller's own like on an article"""
    article = article_service.resolve_article(db, slug)
    liked = like_service.toggle_article_like(db, user.id, article)

    return success_response(
        {
            "liked": liked,
            "action": "added" if liked else "removed",
            "totalLikes": like_service.count_article_likes(db, article.id),
        },
        "Like added successfully" if liked else "Like removed successfully",
    )


@router.put("/{slug}/likes")
def add_user_like(
    slug: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    article = article_service.resolve_article(db, slug)
    like = like_service.add_article_like(db, user.id, article)

    return success_response(
        {"like": serialize_like(like), "totalLikes": like_service.count_article_likes(db, article.id)},
        "Like added successfully",
    )


@router.delete("/{slug}/likes")
def remove_user_like(
    slug: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    article = article_service.resolve_article(db, slug, published_only=False)
    like_service.remove_article_like(db, user.id, article)

    return success_response(
        {"liked": False, "totalLikes": like_service.count_article_likes(db, article.id)},
        "Like removed successfully",
    )
