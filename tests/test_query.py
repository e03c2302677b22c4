"""
Query construction tests: statements are built from whitelists and filters,
user values only ever appear as bound parameters.
"""

import pytest
from flask import Flask

from newsroom.core.errors import ValidationError
from newsroom.core.payload import check_text_fields, json_body, text_field
from newsroom.core.query import (
    ARTICLE_WRITABLE, ArticleFilters, article_from_row, build_article_query,
    build_insert, build_search_query, build_update, parse_bool, parse_int, slugify,
)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def test_filters_from_query_string():
    filters = ArticleFilters.from_args({
        "featured": "true", "trending": "0", "category_id": "7", "limit": "12",
    })
    assert filters.featured is True
    assert filters.trending is False
    assert filters.category_id == 7
    assert filters.limit == 12


def test_filters_fall_back_on_bad_values():
    filters = ArticleFilters.from_args({"category_id": "abc", "limit": "-3"}, default_limit=5)
    assert filters.category_id is None
    assert filters.limit == 5, "negative limits fall back to the default"

    capped = ArticleFilters.from_args({"limit": "100000"}, max_limit=100)
    assert capped.limit == 100


def test_parse_helpers():
    assert parse_bool("TRUE") and parse_bool("1") and parse_bool(True)
    assert not parse_bool("no") and not parse_bool(None)
    assert parse_int("4") == 4
    assert parse_int(None, 9) == 9


# ---------------------------------------------------------------------------
# Article listing
# ---------------------------------------------------------------------------

def test_article_query_without_filters():
    sql, params = build_article_query(ArticleFilters())
    assert "WHERE" not in sql
    assert "ORDER BY a.published_at DESC" in sql
    assert sql.endswith("LIMIT :limit")
    assert params == {"limit": 5}


def test_article_query_with_filters_uses_placeholders():
    sql, params = build_article_query(
        ArticleFilters(category_id=3, featured=True, breaking=True, exclude_id=9, trending=True, limit=4)
    )
    assert "a.category_id = :category_id" in sql
    assert "a.is_featured = :is_featured" in sql
    assert "a.is_breaking = :is_breaking" in sql
    assert "a.id <> :exclude_id" in sql
    assert "ORDER BY a.views DESC" in sql
    assert params == {
        "category_id": 3, "is_featured": True, "is_breaking": True, "exclude_id": 9, "limit": 4,
    }


def test_article_query_joins_are_left_joins():
    sql, _ = build_article_query(ArticleFilters())
    assert "LEFT JOIN categories c" in sql
    assert "LEFT JOIN authors au" in sql


def test_search_query_escapes_wildcards():
    sql, params = build_search_query("50%_off", limit=50)
    assert params["pattern"] == "%50\\%\\_off%"
    assert params["limit"] == 50
    assert "50%_off" not in sql


# ---------------------------------------------------------------------------
# Partial updates and inserts
# ---------------------------------------------------------------------------

def test_build_update_only_whitelisted_keys():
    sql, params = build_update(
        "articles", ARTICLE_WRITABLE, {"title": "New", "views": 999, "evil; DROP": 1}, 42
    )
    assert sql == "UPDATE articles SET title = :title WHERE id = :row_id"
    assert params == {"title": "New", "row_id": 42}


def test_build_update_id_predicate_last_and_touch():
    sql, params = build_update(
        "articles", ARTICLE_WRITABLE, {"slug": "s", "title": "t"}, 1, touch="updated_at"
    )
    assert sql.endswith("updated_at = CURRENT_TIMESTAMP WHERE id = :row_id")
    assert list(params)[-1] == "row_id"


def test_build_update_returns_none_without_fields():
    assert build_update("articles", ARTICLE_WRITABLE, {"views": 1}, 1) is None


def test_build_update_rejects_bad_table():
    with pytest.raises(ValueError):
        build_update("articles; --", ARTICLE_WRITABLE, {"title": "x"}, 1)


def test_build_insert_returns_id():
    sql, params = build_insert("categories", ("name", "slug"), {"name": "Sports", "slug": "sports", "x": 1})
    assert sql == "INSERT INTO categories (name, slug) VALUES (:name, :slug) RETURNING id"
    assert params == {"name": "Sports", "slug": "sports"}


# ---------------------------------------------------------------------------
# Row shaping
# ---------------------------------------------------------------------------

def test_article_from_row_nests_category_and_author():
    row = {
        "id": 1, "title": "T", "slug": "t", "views": None, "is_featured": 1, "is_breaking": 0,
        "category__id": 2, "category__name": "Sports", "category__slug": "sports",
        "category__description": None,
        "author__id": None, "author__name": None, "author__bio": None, "author__avatar_url": None,
    }
    article = article_from_row(row)

    assert article["is_featured"] is True
    assert article["is_breaking"] is False
    assert article["views"] == 0
    assert article["categories"] == {"id": 2, "name": "Sports", "slug": "sports", "description": None}
    assert article["authors"] is None, "missing author should be null, not an empty object"


def test_article_from_row_none():
    assert article_from_row(None) is None


def test_slugify():
    assert slugify("Mt. Kenya Marathon: 2025 Results!") == "mt-kenya-marathon-2025-results"
    assert slugify("  --Hello   World--  ") == "hello-world"


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------

def test_json_body_requires_an_object():
    app = Flask(__name__)
    with app.test_request_context(json={"email": "a@b.co"}):
        assert json_body() == {"email": "a@b.co"}
    with app.test_request_context(data="not json", content_type="application/json"):
        assert json_body() == {}
    with app.test_request_context():
        assert json_body() == {}
    for body in ([1, 2], "text", 42):
        with app.test_request_context(json=body):
            with pytest.raises(ValidationError, match="Invalid JSON body"):
                json_body()


def test_text_fields_must_be_strings():
    assert text_field({"name": "  Amani "}, "name") == "Amani"
    assert text_field({"name": None}, "name") == ""
    assert text_field({}, "name", default=None) is None
    with pytest.raises(ValidationError, match="name must be a string"):
        text_field({"name": 1}, "name")

    data = {"title": "ok", "slug": None, "views": 3}
    assert check_text_fields(data, ("title", "slug")) is data
    with pytest.raises(ValidationError, match="excerpt must be a string"):
        check_text_fields({"excerpt": ["x"]}, ("title", "excerpt"))
