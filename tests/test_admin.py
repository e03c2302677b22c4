"""
Admin API: login, token guard and content management.
"""

from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from newsroom.core.errors import ConflictError, ValidationError
from newsroom.modules.auth import TokenService
from newsroom.modules.news.routes import integrity_error

from conftest import ADMIN_PASS, ADMIN_USER, JWT_SECRET


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def test_login_returns_token(client):
    response = client.post("/api/admin/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})
    assert response.status_code == 200
    token = response.get_json()["token"]

    payload = TokenService(JWT_SECRET).verify(token)
    assert payload["username"] == ADMIN_USER
    assert payload["exp"] - payload["iat"] == 8 * 3600


def test_login_missing_credentials(client):
    response = client.post("/api/admin/login", json={"username": ADMIN_USER})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Missing credentials"}


def test_login_wrong_password(client, sql):
    response = client.post("/api/admin/login", json={"username": ADMIN_USER, "password": "nope"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid credentials"}

    events = sql("SELECT message FROM app_logs WHERE source = 'security'")
    assert any("Failed admin login" in e["message"] for e in events)


# ---------------------------------------------------------------------------
# Token guard
# ---------------------------------------------------------------------------

def test_valid_token_is_accepted(client, admin_headers):
    assert client.get("/api/admin/stats", headers=admin_headers).status_code == 200


def test_token_signed_with_other_secret_is_rejected(client):
    token = TokenService("some-other-secret").issue({"username": ADMIN_USER})
    response = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthorized"}


def test_expired_token_is_rejected(client):
    token = TokenService(JWT_SECRET).issue({"username": ADMIN_USER}, expires_delta=timedelta(seconds=-5))
    response = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_non_bearer_scheme_is_rejected(client, admin_token):
    response = client.get("/api/admin/stats", headers={"Authorization": f"Token {admin_token}"})
    assert response.status_code == 401


def test_malformed_token_is_rejected(client):
    response = client.get("/api/admin/stats", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

def test_stats(client, admin_headers, make_article):
    for views in (5, 50, 20):
        make_article(views=views)

    body = client.get("/api/admin/stats", headers=admin_headers).get_json()
    assert [a["views"] for a in body["top"]] == [50, 20, 5]
    assert set(body["top"][0]) == {"id", "title", "views"}
    assert body["totals"] == {"articles_count": 3, "total_views": 75}


def test_stats_empty_database(client, admin_headers):
    body = client.get("/api/admin/stats", headers=admin_headers).get_json()
    assert body["top"] == []
    assert body["totals"] == {"articles_count": 0, "total_views": 0}


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

def test_create_article_derives_slug(client, admin_headers, make_category):
    category_id = make_category("Politics")
    response = client.post("/api/admin/articles", headers=admin_headers, json={
        "title": "Governor Signs Budget!", "content": "Body", "category_id": category_id,
        "is_breaking": True,
    })
    assert response.status_code == 201
    article = response.get_json()
    assert article["slug"] == "governor-signs-budget"
    assert article["is_breaking"] is True
    assert article["categories"]["name"] == "Politics"
    assert article["views"] == 0


def test_create_article_slug_gets_suffix_when_taken(client, admin_headers):
    first = client.post("/api/admin/articles", headers=admin_headers, json={"title": "Same", "content": "a"})
    second = client.post("/api/admin/articles", headers=admin_headers, json={"title": "Same", "content": "b"})
    assert first.get_json()["slug"] == "same"
    assert second.get_json()["slug"] == "same-1"


def test_create_article_duplicate_explicit_slug(client, admin_headers):
    client.post("/api/admin/articles", headers=admin_headers,
                json={"title": "One", "slug": "story", "content": "a"})
    response = client.post("/api/admin/articles", headers=admin_headers,
                           json={"title": "Two", "slug": "story", "content": "b"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Slug already exists"}


def test_create_article_requires_title_and_content(client, admin_headers):
    response = client.post("/api/admin/articles", headers=admin_headers, json={"title": "No body"})
    assert response.status_code == 400


def test_partial_update_changes_only_given_fields(client, admin_headers, make_article):
    article_id = make_article(title="Original", content="Original body")

    response = client.patch(f"/api/admin/articles/{article_id}", headers=admin_headers,
                            json={"title": "Edited", "views": 1000})
    assert response.status_code == 200
    article = response.get_json()
    assert article["title"] == "Edited"
    assert article["content"] == "Original body"
    assert article["views"] == 0, "views is not writable through the admin API"


def test_update_without_fields(client, admin_headers, make_article):
    article_id = make_article()
    response = client.put(f"/api/admin/articles/{article_id}", headers=admin_headers, json={"views": 3})
    assert response.status_code == 400
    assert response.get_json() == {"error": "No fields to update"}


def test_update_unknown_article(client, admin_headers):
    response = client.put("/api/admin/articles/404", headers=admin_headers, json={"title": "x"})
    assert response.status_code == 404


def test_get_and_delete_article(client, admin_headers, make_article, make_subscriber):
    article_id = make_article(title="Doomed")
    make_subscriber("reader@example.com")
    client.post(f"/api/articles/{article_id}/comments", json={"email": "reader@example.com", "content": "x"})
    client.post(f"/api/articles/{article_id}/like", json={"email": "reader@example.com"})

    assert client.get(f"/api/admin/articles/{article_id}", headers=admin_headers).get_json()["title"] == "Doomed"

    response = client.delete(f"/api/admin/articles/{article_id}", headers=admin_headers)
    assert response.get_json() == {"ok": True}
    assert client.get(f"/api/admin/articles/{article_id}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/admin/articles/{article_id}", headers=admin_headers).status_code == 404


def test_admin_article_list_includes_everything(client, admin_headers, make_article):
    for _ in range(8):
        make_article()
    assert len(client.get("/api/admin/articles", headers=admin_headers).get_json()) == 8


def test_article_integer_fields_are_validated(client, admin_headers, make_article, make_category):
    category_id = make_category("Politics")
    article_id = make_article(category_id=category_id)
    url = f"/api/admin/articles/{article_id}"

    response = client.put(url, headers=admin_headers, json={"category_id": "abc"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "category_id must be an integer"}
    article = client.get(url, headers=admin_headers).get_json()
    assert article["categories"]["id"] == category_id, "rejected update must not detach the category"

    for body, message in (
        ({"author_id": "x"}, "author_id must be an integer"),
        ({"author_id": 1.5}, "author_id must be an integer"),
        ({"reading_time": "ten"}, "reading_time must be an integer"),
        ({"category_id": True}, "category_id must be an integer"),
    ):
        response = client.put(url, headers=admin_headers, json=body)
        assert response.status_code == 400, body
        assert response.get_json() == {"error": message}

    response = client.put(url, headers=admin_headers, json={"category_id": None, "reading_time": "7"})
    assert response.status_code == 200
    assert response.get_json()["categories"] is None, "explicit null detaches"
    assert response.get_json()["reading_time"] == 7


def test_article_references_must_exist(client, admin_headers, make_article):
    response = client.post("/api/admin/articles", headers=admin_headers,
                           json={"title": "Orphan", "content": "x", "category_id": 999})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Category not found"}

    response = client.post("/api/admin/articles", headers=admin_headers,
                           json={"title": "Orphan", "content": "x", "author_id": 999})
    assert response.get_json() == {"error": "Author not found"}
    assert client.get("/api/admin/articles", headers=admin_headers).get_json() == []

    article_id = make_article()
    response = client.put(f"/api/admin/articles/{article_id}", headers=admin_headers,
                          json={"category_id": 999})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Category not found"}


def test_integrity_errors_are_told_apart():
    unique = IntegrityError("INSERT", {}, Exception('duplicate key value violates unique constraint "articles_slug_key"'))
    foreign = IntegrityError("INSERT", {}, Exception('insert or update on table "articles" violates foreign key constraint'))

    assert isinstance(integrity_error(unique, "Slug already exists"), ConflictError)
    assert integrity_error(unique, "Slug already exists").message == "Slug already exists"
    error = integrity_error(foreign, "Slug already exists")
    assert isinstance(error, ValidationError)
    assert error.message == "Referenced record does not exist"


def test_non_string_fields_are_rejected(client, admin_headers, make_article):
    response = client.post("/api/admin/articles", headers=admin_headers, json={"title": 5, "content": "x"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "title must be a string"}

    response = client.post("/api/admin/articles", headers=admin_headers, json=["title", "content"])
    assert response.get_json() == {"error": "Invalid JSON body"}

    response = client.post("/api/admin/categories", headers=admin_headers, json={"name": 5, "slug": "five"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "name must be a string"}

    response = client.post("/api/admin/authors", headers=admin_headers, json={"name": "Ann", "email": ["a"]})
    assert response.get_json() == {"error": "email must be a string"}


# ---------------------------------------------------------------------------
# Categories and authors
# ---------------------------------------------------------------------------

def test_category_crud(client, admin_headers):
    response = client.post("/api/admin/categories", headers=admin_headers,
                           json={"name": "Health", "slug": "health"})
    assert response.status_code == 201
    category_id = response.get_json()["id"]

    response = client.put(f"/api/admin/categories/{category_id}", headers=admin_headers,
                          json={"description": "Hospitals and clinics"})
    assert response.get_json()["description"] == "Hospitals and clinics"

    assert client.delete(f"/api/admin/categories/{category_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/categories").get_json() == []


def test_category_requires_name_and_slug(client, admin_headers):
    response = client.post("/api/admin/categories", headers=admin_headers, json={"name": "Health"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Name and slug required"}


def test_category_duplicate_slug(client, admin_headers, make_category):
    make_category("Health", slug="health")
    response = client.post("/api/admin/categories", headers=admin_headers,
                           json={"name": "Health 2", "slug": "health"})
    assert response.status_code == 400


def test_category_in_use_cannot_be_deleted(client, admin_headers, make_category, make_article):
    category_id = make_category("Sports")
    make_article(category_id=category_id)

    response = client.delete(f"/api/admin/categories/{category_id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json() == {"error": "Cannot delete category with articles"}


def test_author_crud_and_duplicate_email(client, admin_headers):
    response = client.post("/api/admin/authors", headers=admin_headers,
                           json={"name": "Brian", "email": "Brian@News.co.ke"})
    assert response.status_code == 201
    author = response.get_json()
    assert author["email"] == "brian@news.co.ke"

    duplicate = client.post("/api/admin/authors", headers=admin_headers,
                            json={"name": "Other", "email": "brian@news.co.ke"})
    assert duplicate.status_code == 400

    assert client.post("/api/admin/authors", headers=admin_headers, json={"bio": "x"}).status_code == 400

    response = client.put(f"/api/admin/authors/{author['id']}", headers=admin_headers, json={"bio": "Editor"})
    assert response.get_json()["bio"] == "Editor"


def test_author_in_use_cannot_be_deleted(client, admin_headers, make_author, make_article):
    author_id = make_author()
    make_article(author_id=author_id)

    response = client.delete(f"/api/admin/authors/{author_id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json() == {"error": "Cannot delete author with articles"}


# ---------------------------------------------------------------------------
# Comment moderation and subscribers
# ---------------------------------------------------------------------------

def test_comment_moderation(client, admin_headers, make_article, make_subscriber, sql):
    article_id = make_article(title="Story")
    make_subscriber("reader@example.com", name="Amani")
    comment_id = client.post(f"/api/articles/{article_id}/comments",
                             json={"email": "reader@example.com", "content": "Hello"}).get_json()["id"]
    sql("UPDATE comments SET is_approved = :a WHERE id = :id", {"a": False, "id": comment_id})

    comments = client.get("/api/admin/comments", headers=admin_headers).get_json()
    assert comments[0]["article_title"] == "Story"
    assert comments[0]["subscriber_email"] == "reader@example.com"
    assert comments[0]["is_approved"] is False

    response = client.patch(f"/api/admin/comments/{comment_id}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert len(client.get(f"/api/articles/{article_id}/comments").get_json()) == 1

    assert client.delete(f"/api/admin/comments/{comment_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/articles/{article_id}/comments").get_json() == []
    assert client.delete(f"/api/admin/comments/{comment_id}", headers=admin_headers).status_code == 404


def test_subscriber_management(client, admin_headers, make_article, make_subscriber, sql):
    article_id = make_article()
    subscriber_id = make_subscriber("reader@example.com")
    client.post(f"/api/articles/{article_id}/comments", json={"email": "reader@example.com", "content": "x"})
    client.post(f"/api/articles/{article_id}/like", json={"email": "reader@example.com"})

    subscribers = client.get("/api/admin/subscribers", headers=admin_headers).get_json()
    assert subscribers[0]["comment_count"] == 1
    assert subscribers[0]["like_count"] == 1

    response = client.delete(f"/api/admin/subscribers/{subscriber_id}", headers=admin_headers)
    assert response.status_code == 200
    assert sql("SELECT COUNT(*) AS n FROM comments")[0]["n"] == 0
    assert sql("SELECT COUNT(*) AS n FROM article_likes")[0]["n"] == 0
    assert client.get("/api/admin/subscribers", headers=admin_headers).get_json() == []


def test_recent_logs(client, admin_headers):
    client.post("/api/admin/login", json={"username": ADMIN_USER, "password": "wrong"})

    logs = client.get("/api/admin/logs?level=warning", headers=admin_headers).get_json()
    assert logs, "failed login should be logged as a warning"
    assert all(entry["level"] == "WARNING" for entry in logs)


def test_content_changes_are_logged(client, admin_headers):
    client.post("/api/admin/articles", headers=admin_headers, json={"title": "Logged", "content": "x"})

    logs = client.get("/api/admin/logs?level=info", headers=admin_headers).get_json()
    entry = next(e for e in logs if e["source"] == "articles")
    assert entry["message"] == "Article created: Logged"
    assert entry["request_path"] == "/api/admin/articles"
