"""
📝 BLOG MANAGEMENT HELPER
Quick script to seed and maintain the blog database.

Usage:
    python manage_blog.py --seed [--reset]
    python manage_blog.py --list
    python manage_blog.py --make-admin "ana@example.com"
    python manage_blog.py --deactivate-user "ana@example.com"
    python manage_blog.py --activate-user "ana@example.com"
    python manage_blog.py --likes
    python manage_blog.py --recount
"""

import sys
import os

# Add the app directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import SessionLocal, Base, engine
from app.errors import BlogError
from app.models.article import Article
from app.models.comment import Comment
from app.models.like import Like
from app.models.user import User
from app.services.articles import create_article
from app.services.comments import create_comment
from app.services.counters import recount_all_articles
from app.services.likes import count_article_likes


SAMPLE_ARTICLES = [
    {
        "title": "Getting Started with FastAPI",
        "slug": "getting-started-with-fastapi",
        "content": (
            "FastAPI is a modern web framework for building APIs with Python based on standard "
            "type hints. It validates requests with pydantic, generates OpenAPI documentation "
            "automatically and runs on any ASGI server. In this article we build a small REST "
            "service step by step, from the first route to dependency injection and testing."
        ),
        "author": "Web Architecture Team",
        "tags": ["python", "fastapi", "backend", "api"],
        "likes_count": 15,
        "views_count": 120,
    },
    {
        "title": "Relational Stores for Web Applications",
        "slug": "relational-stores-for-web-applications",
        "content": (
            "A relational database stores rows in tables and enforces constraints such as unique "
            "keys and foreign keys. SQLAlchemy maps those tables to Python classes and lets us "
            "express atomic updates, counts and joins without writing raw SQL for every query. "
            "We look at indexes, unique constraints and denormalized counters."
        ),
        "author": "Data Team",
        "tags": ["databases", "sqlalchemy", "backend"],
        "likes_count": 8,
        "views_count": 64,
    },
    {
        "title": "Designing Comment Threads",
        "slug": "designing-comment-threads",
        "content": (
            "Nested comments look simple until moderation enters the picture. Replies must point "
            "to an approved parent on the same article, counters must stay exact after approvals "
            "and deletions, and listings need different orderings for parents and replies. This "
            "article walks through a practical design for all of it."
        ),
        "author": "Community Team",
        "tags": ["design", "comments", "moderation"],
        "likes_count": 3,
        "views_count": 21,
    },
]

SAMPLE_COMMENTS = [
    {
        "article_slug": "getting-started-with-fastapi",
        "author": "Backend Developer",
        "email": "dev@example.com",
        "content": "Great walkthrough, the dependency injection part finally clicked for me.",
    },
    {
        "article_slug": "getting-started-with-fastapi",
        "author": "Student",
        "email": "student@example.com",
        "content": "Could you write a follow-up about testing with TestClient?",
    },
    {
        "article_slug": "designing-comment-threads",
        "author": "Moderator",
        "email": "mod@example.com",
        "content": "The recount-after-moderation approach saved us from drifting counters.",
    },
]


def seed(reset=False):
    """Insert sample articles and comments"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        print("🌱 Seeding sample data...")

        if reset:
            db.query(Like).delete()
            db.query(Comment).delete()
            db.query(Article).delete()
            db.commit()
            print("🧹 Existing articles, comments and likes removed")

        # Sample comments only go to articles created in this run
        articles = {}
        for data in SAMPLE_ARTICLES:
            if db.query(Article).filter(Article.slug == data["slug"]).first():
                print(f"⏭️  {data['slug']} already exists")
                continue
            articles[data["slug"]] = create_article(db, **dict(data))
        print(f"✅ {len(articles)} articles created")

        created = 0
        for data in SAMPLE_COMMENTS:
            article = articles.get(data["article_slug"])
            if article is None:
                continue
            create_comment(db, article, data["content"], author=data["author"], email=data["email"])
            created += 1
        print(f"✅ {created} comments inserted")

        print("\n🎉 Database seeded successfully!")
        return True
    except BlogError as e:
        print(f"❌ Seeding failed: {e.message}")
        return False
    finally:
        db.close()


def list_articles():
    """List all articles with their counters"""
    db = SessionLocal()

    try:
        articles = db.query(Article).order_by(Article.published_at.desc()).all()

        if not articles:
            print("No articles found.")
            return

        print("\n📊 ARTICLES:\n")
        print(f"{'Slug':<45} {'Likes':<8} {'Ledger':<8} {'Views':<8} {'Comments':<10} {'Status':<12}")
        print("-" * 95)

        for a in articles:
            status = "🟢 Published" if a.is_published else "🔴 Draft"
            ledger = count_article_likes(db, a.id)
            print(f"{a.slug:<45} {a.likes_count:<8} {ledger:<8} {a.views_count:<8} {a.comments_count:<10} {status:<12}")

        print()
    finally:
        db.close()


def _update_user(email, **changes):
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()

        if not user:
            print(f"❌ User '{email}' not found!")
            return False

        for key, value in changes.items():
            setattr(user, key, value)
        db.commit()

        print(f"✅ User '{user.email}' updated: {changes}")
        return True
    finally:
        db.close()


def show_likes():
    """Compare the anonymous counter with the identity ledger per article"""
    db = SessionLocal()

    try:
        print("\n📊 Current like state:\n")
        for a in db.query(Article).order_by(Article.id).all():
            print(f"   \"{a.title}\"")
            print(f"   Slug:    {a.slug}")
            print(f"   Counter: {a.likes_count}")
            print(f"   Ledger:  {count_article_likes(db, a.id)}")
            print()
    finally:
        db.close()


def recount():
    """Repair comments_count on every article"""
    db = SessionLocal()

    try:
        drifted = recount_all_articles(db)
        if not drifted:
            print("✅ All comment counters are consistent")
            return True

        for article_id, (old, new) in drifted.items():
            print(f"🔧 Article {article_id}: {old} -> {new}")
        print(f"✅ {len(drifted)} counters repaired")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1]

    if command == "--seed":
        ok = seed(reset="--reset" in sys.argv[2:])
        sys.exit(0 if ok else 1)

    elif command == "--list":
        list_articles()

    elif command in ("--make-admin", "--deactivate-user", "--activate-user"):
        if len(sys.argv) < 3:
            print(f"Usage: python manage_blog.py {command} <email>")
            sys.exit(1)
        changes = {
            "--make-admin": {"role": "admin"},
            "--deactivate-user": {"is_active": False},
            "--activate-user": {"is_active": True},
        }[command]
        _update_user(sys.argv[2], **changes)

    elif command == "--likes":
        show_likes()

    elif command == "--recount":
        recount()

    else:
        print(f"Unknown command: {command}")
        print(__doc__)
        sys.exit(1)
