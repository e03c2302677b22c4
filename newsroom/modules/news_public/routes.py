"""
Public News Routes
==================

Provides:
- GET /api/categories -- all categories by name
- GET /api/authors -- all authors by name
- GET /api/articles -- listing with featured/trending/category_id/limit filters
- GET /api/articles/breaking -- breaking news, newest first
- GET /api/articles/related -- same category, excluding one article
- GET /api/articles/slug/<slug> -- single article or null
- POST /api/articles/<id>/views -- increment the view counter
- GET /api/search?q= -- substring search over title, excerpt and content
"""

import logging

from flask import current_app, jsonify, request

from newsroom.core.context import get_database
from newsroom.core.errors import ValidationError
from newsroom.core.query import (
    ARTICLE_FROM, ARTICLE_SELECT, ArticleFilters, article_from_row,
    build_article_query, build_search_query, parse_int,
)
from . import news_public_bp

logger = logging.getLogger(__name__)

RELATED_LIMIT = 3


# ===== Database helpers =====

def get_categories_db():
    return get_database().query('SELECT id, name, slug, description FROM categories ORDER BY name')


def get_authors_db():
    return get_database().query(
        'SELECT id, name, email, bio, avatar_url FROM authors ORDER BY name'
    )


def get_articles_db(filters):
    """Articles matching the filters, shaped with nested category and author"""
    sql, params = build_article_query(filters)
    return [article_from_row(row) for row in get_database().query(sql, params)]


def get_article_by_slug_db(slug):
    row = get_database().query_one(
        f'SELECT {ARTICLE_SELECT} {ARTICLE_FROM} WHERE a.slug = :slug',
        {'slug': slug},
    )
    return article_from_row(row)


def increment_views_db(article_id):
    """Atomically bump the counter, returning the new value or None for an unknown id"""
    row = get_database().query_one(
        'UPDATE articles SET views = views + 1 WHERE id = :id RETURNING views',
        {'id': article_id},
    )
    return row['views'] if row else None


def search_articles_db(term, limit):
    sql, params = build_search_query(term, limit)
    return [article_from_row(row) for row in get_database().query(sql, params)]


# ===== Routes =====

@news_public_bp.route('/categories', methods=['GET'])
def get_categories():
    return jsonify(get_categories_db())


@news_public_bp.route('/authors', methods=['GET'])
def get_authors():
    return jsonify(get_authors_db())


@news_public_bp.route('/articles', methods=['GET'])
def get_articles():
    """Article listing; filters come straight from the query string"""
    filters = ArticleFilters.from_args(
        request.args, default_limit=current_app.config.get('DEFAULT_LIST_LIMIT', 5)
    )
    return jsonify(get_articles_db(filters))


@news_public_bp.route('/articles/breaking', methods=['GET'])
def get_breaking_articles():
    filters = ArticleFilters(
        breaking=True,
        limit=parse_int(request.args.get('limit'), current_app.config.get('DEFAULT_LIST_LIMIT', 5),
                        minimum=1, maximum=100),
    )
    return jsonify(get_articles_db(filters))


@news_public_bp.route('/articles/related', methods=['GET'])
def get_related_articles():
    category_id = parse_int(request.args.get('category_id'))
    if category_id is None:
        raise ValidationError('category_id is required')

    filters = ArticleFilters(
        category_id=category_id,
        exclude_id=parse_int(request.args.get('exclude_id')),
        limit=parse_int(request.args.get('limit'), RELATED_LIMIT, minimum=1, maximum=100),
    )
    return jsonify(get_articles_db(filters))


@news_public_bp.route('/articles/slug/<slug>', methods=['GET'])
def get_article_by_slug(slug):
    # Unknown slugs answer null rather than 404
    return jsonify(get_article_by_slug_db(slug))


@news_public_bp.route('/articles/<int:article_id>/views', methods=['POST'])
def increment_views(article_id):
    views = increment_views_db(article_id)
    if views is None:
        logger.info(f"View increment for unknown article {article_id}")
        return jsonify(None)
    return jsonify({'views': views})


@news_public_bp.route('/search', methods=['GET'])
def search():
    term = (request.args.get('q') or '').strip()
    if not term:
        return jsonify([])
    return jsonify(search_articles_db(term, current_app.config.get('SEARCH_LIMIT', 50)))
