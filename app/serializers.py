"""Convert ORM objects to the camelCase dicts the frontend consumes."""


def _iso(value):
    return value.isoformat() if value else None


def serialize_user(user):
    """Public user info. The password hash never leaves the server."""
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "role": user.role,
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
        "lastLogin": _iso(user.last_login),
    }


def serialize_author(user):
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "avatar": user.avatar}


def serialize_article_summary(article):
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "author": article.author,
        "imageUrl": article.image_url,
        "tags": article.tag_list,
        "likesCount": article.likes_count,
        "viewsCount": article.views_count,
        "commentsCount": article.comments_count,
        "readingTime": article.reading_time,
        "publishedAt": _iso(article.published_at),
        "url": article.url,
    }


def serialize_article(article):
    data = serialize_article_summary(article)
    data.update({
        "content": article.content,
        "isPublished": article.is_published,
        "createdAt": _iso(article.created_at),
        "updatedAt": _iso(article.updated_at),
    })
    return data


def serialize_article_ref(article):
    if article is None:
        return None
    return {"id": article.id, "title": article.title, "slug": article.slug}


def serialize_comment(comment):
    return {
        "id": comment.id,
        "articleId": comment.article_id,
        "userId": comment.user_id,
        "user": serialize_author(comment.user),
        "author": comment.author,
        "content": comment.content,
        "parentCommentId": comment.parent_comment_id,
        "isReply": comment.is_reply,
        "isApproved": comment.is_approved,
        "likesCount": comment.likes_count,
        "isEdited": comment.is_edited,
        "editedAt": _iso(comment.edited_at),
        "createdAt": _iso(comment.created_at),
    }


def serialize_like(like):
    return {
        "id": like.id,
        "userId": like.user_id,
        "articleId": like.article_id,
        "user": serialize_author(like.user),
        "createdAt": _iso(like.created_at),
    }
