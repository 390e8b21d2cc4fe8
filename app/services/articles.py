from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.article import Article
from app.models.comment import Comment
from app.services.counters import increment_article_views
from app.services.pagination import paginate

SORT_FIELDS = {
    "publishedAt": Article.published_at,
    "createdAt": Article.created_at,
    "updatedAt": Article.updated_at,
    "likesCount": Article.likes_count,
    "viewsCount": Article.views_count,
    "title": Article.title,
}

MIN_SEARCH_LENGTH = 2


def is_native_id(value: str) -> bool:
    return value.isdigit()


def resolve_article(db: Session, slug_or_id: str, published_only: bool = True) -> Article:
    """
    Look an article up by slug. Only when no article owns that slug and the
    value looks like a store id (all digits) is it retried as an id.
    """
    slug = slug_or_id.strip().lower()
    query = db.query(Article)
    if published_only:
        query = query.filter(Article.is_published.is_(True))

    article = query.filter(Article.slug == slug).first()
    if article is None and is_native_id(slug):
        article = query.filter(Article.id == int(slug)).first()

    if article is None:
        raise NotFoundError("Article not found")
    return article


def view_article(db: Session, slug: str) -> Article:
    """Fetch a published article and count the view."""
    article = resolve_article(db, slug)
    increment_article_views(db, article.id)
    db.refresh(article)
    return article


def _tag_filter(tag: str):
    tag = tag.strip().lower()
    return or_(
        Article.tags == tag,
        Article.tags.like(f"{tag},%"),
        Article.tags.like(f"%,{tag}"),
        Article.tags.like(f"%,{tag},%"),
    )


def _text_filter(term: str):
    pattern = f"%{term}%"
    return or_(
        Article.title.ilike(pattern),
        Article.content.ilike(pattern),
        Article.tags.ilike(pattern),
    )


def _sorted(query, sort_by: str, sort_order: str):
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise ValidationError(
            "Invalid sort field",
            errors=[{"field": "sortBy", "message": f"Use one of: {', '.join(SORT_FIELDS)}"}],
        )
    ordering = column.asc() if sort_order == "asc" else column.desc()
    return query.order_by(ordering, Article.id.desc())


def list_articles(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    tag: str | None = None,
    author: str | None = None,
    sort_by: str = "publishedAt",
    sort_order: str = "desc",
):
    query = db.query(Article).filter(Article.is_published.is_(True))
    if search:
        query = query.filter(_text_filter(search.strip()))
    if tag:
        query = query.filter(_tag_filter(tag))
    if author:
        query = query.filter(Article.author.ilike(f"%{author.strip()}%"))

    return paginate(_sorted(query, sort_by, sort_order), page, limit)


def search_articles(db: Session, term: str, page: int = 1, limit: int = 10,
                    sort_by: str = "publishedAt", sort_order: str = "desc"):
    term = (term or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search term must be at least {MIN_SEARCH_LENGTH} characters")

    # Case-insensitive pattern match over title, content and tags
    query = db.query(Article).filter(Article.is_published.is_(True), _text_filter(term))
    items, total = paginate(_sorted(query, sort_by, sort_order), page, limit)
    return term, items, total


def popular_articles(db: Session, limit: int = 5) -> list[Article]:
    return (
        db.query(Article)
        .filter(Article.is_published.is_(True))
        .order_by(Article.likes_count.desc(), Article.views_count.desc(), Article.id.desc())
        .limit(limit)
        .all()
    )


def all_tags(db: Session) -> list[str]:
    rows = db.query(Article.tags).filter(Article.is_published.is_(True)).all()
    tags = set()
    for (raw,) in rows:
        tags.update(t.strip() for t in (raw or "").split(",") if t.strip())
    return sorted(tags)


def blog_stats(db: Session) -> dict:
    published = Article.is_published.is_(True)
    total_articles = db.query(func.count(Article.id)).filter(published).scalar() or 0
    total_views = db.query(func.sum(Article.views_count)).filter(published).scalar() or 0
    total_likes = db.query(func.sum(Article.likes_count)).filter(published).scalar() or 0
    total_comments = (
        db.query(func.count(Comment.id))
        .join(Article, Comment.article_id == Article.id)
        .filter(published, Comment.is_approved.is_(True))
        .scalar()
        or 0
    )

    return {
        "totalArticles": total_articles,
        "totalViews": int(total_views),
        "totalLikes": int(total_likes),
        "totalComments": total_comments,
        "totalTags": len(all_tags(db)),
    }


def create_article(db: Session, **fields) -> Article:
    """Create an article (admin/seed only)."""
    tags = fields.pop("tags", None) or []
    slug = fields.get("slug", "").strip().lower()
    if db.query(Article).filter(Article.slug == slug).first():
        raise ConflictError("An article with this slug already exists")

    try:
        article = Article(**fields)
    except ValueError as e:
        raise ValidationError(str(e), errors=[{"field": "slug", "message": str(e)}])
    article.tag_list = tags

    db.add(article)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("An article with this slug already exists")
    db.refresh(article)
    return article


def update_article_image(db: Session, slug: str, image_url: str) -> Article:
    article = resolve_article(db, slug, published_only=False)
    article.image_url = image_url.strip()
    db.commit()
    db.refresh(article)
    return article
