"""
Shared fixtures for the newsroom tests.

Every test gets a fresh sqlite database in a temporary directory. External
providers (SMTP, the image host) are never configured here; tests that need
them patch the service objects with unittest.mock.

NOTE: pytest and pytest-flask are listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest

from newsroom import create_app

ADMIN_USER = "admin"
ADMIN_PASS = "test-password"
JWT_SECRET = "test-jwt-secret"


def build_config(db_dir, **overrides):
    config = {
        "TESTING": True,
        "DB_DIR": db_dir,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + os.path.join(db_dir, "news.db"),
        "ADMIN_USER": ADMIN_USER,
        "ADMIN_PASS": ADMIN_PASS,
        "ADMIN_JWT_SECRET": JWT_SECRET,
        "ADMIN_TOKEN_HOURS": 8,
        # Keep real providers out of tests regardless of the environment
        "SMTP_USER": None,
        "SMTP_PASS": None,
        "SPACES_BUCKET": None,
        "SPACES_KEY": None,
        "SPACES_SECRET": None,
        "SPACES_FOLDER": "mtkenyanews",
        "COMMENTS_REQUIRE_APPROVAL": False,
    }
    config.update(overrides)
    return config


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for the test database, cleaned up after."""
    d = tempfile.mkdtemp(prefix="newsroom-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised app with every module registered."""
    return create_app(build_config(tmp_db_dir))


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def newsroom(app):
    return app.extensions["newsroom"]


@pytest.fixture
def admin_token(client):
    response = client.post("/api/admin/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})
    assert response.status_code == 200, response.get_json()
    return response.get_json()["token"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def sql(app):
    """Run one statement against the test database and return its rows."""
    def run(statement, params=None):
        with app.app_context():
            return app.extensions["newsroom"].database.query(statement, params)
    return run


@pytest.fixture
def make_category(sql):
    def make(name="Politics", slug=None, description=None):
        return sql(
            "INSERT INTO categories (name, slug, description) VALUES (:name, :slug, :description) RETURNING id",
            {"name": name, "slug": slug or name.lower(), "description": description},
        )[0]["id"]
    return make


@pytest.fixture
def make_author(sql):
    def make(name="Jane Wanjiku", email=None):
        return sql(
            "INSERT INTO authors (name, email) VALUES (:name, :email) RETURNING id",
            {"name": name, "email": email},
        )[0]["id"]
    return make


@pytest.fixture
def make_article(sql):
    counter = {"n": 0}

    def make(title=None, category_id=None, author_id=None, views=0, published_at=None,
             is_featured=False, is_breaking=False, content="Body text", excerpt=None):
        counter["n"] += 1
        title = title or f"Article {counter['n']}"
        slug = title.lower().replace(" ", "-")
        return sql(
            "INSERT INTO articles (title, slug, content, excerpt, category_id, author_id, views, "
            "published_at, is_featured, is_breaking) VALUES (:title, :slug, :content, :excerpt, "
            ":category_id, :author_id, :views, :published_at, :is_featured, :is_breaking) RETURNING id",
            {
                "title": title, "slug": slug, "content": content, "excerpt": excerpt,
                "category_id": category_id, "author_id": author_id, "views": views,
                "published_at": published_at or f"2025-01-{counter['n']:02d} 08:00:00",
                "is_featured": is_featured, "is_breaking": is_breaking,
            },
        )[0]["id"]
    return make


@pytest.fixture
def make_subscriber(client):
    """Subscribe through the API and return the subscriber id."""
    def make(email="reader@example.com", name="Reader"):
        response = client.post("/api/subscribe", json={"email": email, "name": name})
        assert response.status_code == 200, response.get_json()
        return response.get_json()["id"]
    return make
