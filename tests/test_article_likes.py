from app.models.article import Article
from app.models.like import Like
from app.services import likes as like_service
from tests.conftest import auth


def _like(client, slug, action):
    return client.post(f"/api/articles/{slug}/like", json={"action": action})


def test_counter_increment_then_decrement_restores_value(client, make_article):
    make_article(likes_count=5)

    assert _like(client, "test-slug", "increment").json()["data"]["likesCount"] == 6
    res = _like(client, "test-slug", "decrement")

    assert res.status_code == 200
    assert res.json()["data"] == {"liked": False, "likesCount": 5, "action": "decrement"}


def test_counter_is_not_idempotent_and_clamps_at_zero(client, db, make_article):
    article = make_article()

    for _ in range(2):
        _like(client, "test-slug", "increment")
    db.refresh(article)
    assert article.likes_count == 2

    for _ in range(3):
        res = _like(client, "test-slug", "decrement")
        assert res.status_code == 200
    db.refresh(article)
    assert article.likes_count == 0
    assert res.json()["data"]["likesCount"] == 0


def test_counter_rejects_unknown_action(client, make_article):
    make_article()

    bad = _like(client, "test-slug", "toggle")
    missing = client.post("/api/articles/test-slug/like", json={})

    assert bad.status_code == missing.status_code == 400
    assert bad.json()["success"] is False
    assert "increment" in bad.json()["message"]


def test_counter_unknown_slug_is_not_found(client, make_article):
    make_article()
    assert _like(client, "no-such-article", "increment").status_code == 404


def test_numeric_id_falls_back_when_no_slug_matches(client, make_article):
    article = make_article()

    res = _like(client, str(article.id), "increment")
    assert res.status_code == 200
    assert res.json()["data"]["likesCount"] == 1


def test_numeric_slug_wins_over_id(client, make_article):
    first = make_article(slug="first")
    make_article(slug=str(first.id), title="Numeric slug article")

    res = client.get(f"/api/articles/{first.id}")
    assert res.json()["data"]["article"]["title"] == "Numeric slug article"


def test_identity_toggle_alternates(client, db, register, make_article):
    article = make_article(likes_count=7)
    _, token = register()

    first = client.post("/api/articles/test-slug/likes", headers=auth(token))
    second = client.post("/api/articles/test-slug/likes", headers=auth(token))
    third = client.post("/api/articles/test-slug/likes", headers=auth(token))

    assert first.json()["data"]["liked"] is True
    assert second.json()["data"]["liked"] is False
    assert third.json()["data"]["liked"] is True
    assert db.query(Like).count() == 1

    # The ledger never moves the anonymous counter
    db.refresh(article)
    assert article.likes_count == 7


def test_identity_toggle_requires_auth(client, make_article):
    make_article()
    assert client.post("/api/articles/test-slug/likes").status_code == 401


def test_duplicate_insert_race_is_benign(db, make_article, register, monkeypatch):
    article = make_article()
    user, _ = register()
    db.add(Like(user_id=user["id"], article_id=article.id))
    db.commit()

    # Simulate the other request winning between the existence check and the insert
    monkeypatch.setattr(like_service, "find_like", lambda *args: None)
    liked = like_service.toggle_article_like(db, user["id"], article)

    assert liked is True
    assert db.query(Like).count() == 1


def test_explicit_add_and_remove(client, register, make_article):
    make_article()
    _, token = register()

    added = client.put("/api/articles/test-slug/likes", headers=auth(token))
    again = client.put("/api/articles/test-slug/likes", headers=auth(token))
    removed = client.delete("/api/articles/test-slug/likes", headers=auth(token))
    nothing = client.delete("/api/articles/test-slug/likes", headers=auth(token))

    assert added.status_code == 200
    assert added.json()["data"]["totalLikes"] == 1
    assert again.status_code == 409
    assert removed.status_code == 200
    assert nothing.status_code == 404


def test_like_ledger_listing(client, register, make_article):
    make_article()
    ana, ana_token = register()
    bob, bob_token = register(email="bob@x.com", name="Bob")
    client.post("/api/articles/test-slug/likes", headers=auth(ana_token))
    client.post("/api/articles/test-slug/likes", headers=auth(bob_token))

    res = client.get("/api/articles/test-slug/likes?limit=1")

    data = res.json()["data"]
    assert data["totalLikes"] == 2
    assert len(data["likes"]) == 1
    assert data["likes"][0]["user"]["name"] == "Bob"


def test_article_detail_counts_views_and_reports_user_like(client, db, register, make_article):
    article = make_article()
    _, token = register()

    anonymous = client.get("/api/articles/test-slug")
    assert anonymous.json()["data"]["userLiked"] is False
    assert anonymous.json()["data"]["article"]["viewsCount"] == 1

    client.post("/api/articles/test-slug/likes", headers=auth(token))
    mine = client.get("/api/articles/test-slug", headers=auth(token))
    assert mine.json()["data"]["userLiked"] is True
    assert mine.json()["data"]["article"]["viewsCount"] == 2

    # A broken token just means anonymous on optional routes
    broken = client.get("/api/articles/test-slug", headers=auth("garbage"))
    assert broken.status_code == 200
    assert broken.json()["data"]["userLiked"] is False

    db.refresh(article)
    assert article.views_count == 3


def test_unpublished_article_is_not_found(client, make_article):
    make_article(is_published=False)
    assert client.get("/api/articles/test-slug").status_code == 404
    assert _like(client, "test-slug", "increment").status_code == 404


def test_user_liked_articles_with_stats(client, register, make_article):
    make_article()
    make_article(slug="second")
    user, token = register()
    client.post("/api/articles/test-slug/likes", headers=auth(token))
    client.post("/api/articles/second/likes", headers=auth(token))

    res = client.get(f"/api/users/{user['id']}/likes", headers=auth(token))

    data = res.json()["data"]
    assert [like["article"]["slug"] for like in data["likes"]] == ["second", "test-slug"]
    assert data["stats"] == {"totalLikes": 2, "totalArticles": 2, "totalUsers": 1}


def test_article_not_touched_by_counter_of_other_article(client, db, make_article):
    make_article()
    other = make_article(slug="other")

    _like(client, "test-slug", "increment")

    db.refresh(other)
    assert db.query(Article).filter(Article.slug == "test-slug").one().likes_count == 1
    assert other.likes_count == 0
