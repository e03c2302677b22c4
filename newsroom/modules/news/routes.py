"""
News Admin Routes
=================

Provides (bearer token required):
- GET/POST /api/admin/articles, GET/PUT/PATCH/DELETE /api/admin/articles/<id>
- GET/POST /api/admin/categories, PUT/DELETE /api/admin/categories/<id>
- GET/POST /api/admin/authors, PUT/DELETE /api/admin/authors/<id>

Categories and authors cannot be deleted while articles reference them.
"""

import logging

from flask import jsonify
from sqlalchemy.exc import IntegrityError

from newsroom.core.context import get_database, get_newsroom
from newsroom.core.errors import ConflictError, NotFoundError, ValidationError
from newsroom.core.payload import check_text_fields, json_body, text_field
from newsroom.core.query import (
    ARTICLE_FROM, ARTICLE_SELECT, ARTICLE_WRITABLE, AUTHOR_WRITABLE, CATEGORY_WRITABLE,
    article_from_row, build_insert, build_update, parse_bool, parse_int, slugify,
)
from . import news_bp

logger = logging.getLogger(__name__)

BOOLEAN_FIELDS = ('is_featured', 'is_breaking')
INTEGER_FIELDS = ('category_id', 'author_id', 'reading_time')
TEXT_FIELDS = ('title', 'slug', 'excerpt', 'content', 'featured_image', 'published_at')

# (field, table, label) for article foreign keys
REFERENCES = (
    ('category_id', 'categories', 'Category'),
    ('author_id', 'authors', 'Author'),
)


# ===== Database helpers =====

def create_slug(title):
    """Create URL-friendly slug with uniqueness checking"""
    db = get_database()
    base_slug = slugify(title) or 'article'
    slug = base_slug
    counter = 1

    while db.query_one('SELECT id FROM articles WHERE slug = :slug', {'slug': slug}):
        slug = f"{base_slug}-{counter}"
        counter += 1

    return slug


def get_all_articles_db():
    rows = get_database().query(
        f'SELECT {ARTICLE_SELECT} {ARTICLE_FROM} ORDER BY a.published_at DESC, a.id DESC'
    )
    return [article_from_row(row) for row in rows]


def get_article_db(article_id):
    row = get_database().query_one(
        f'SELECT {ARTICLE_SELECT} {ARTICLE_FROM} WHERE a.id = :id', {'id': article_id}
    )
    return article_from_row(row)


def integrity_error(e, conflict_message):
    """ConflictError for unique violations, ValidationError for any other constraint"""
    if 'unique' in str(e.orig).lower():
        return ConflictError(conflict_message)
    return ValidationError('Referenced record does not exist')


def check_references_db(fields):
    """400 when category_id/author_id point at rows that do not exist"""
    db = get_database()
    for key, table, label in REFERENCES:
        if fields.get(key) is not None and not db.query_one(
            f'SELECT id FROM {table} WHERE id = :id', {'id': fields[key]}
        ):
            raise ValidationError(f'{label} not found')


def insert_row_db(table, allowed, data, conflict_message):
    """INSERT the allowed fields and return the new id; unique violations become ConflictError"""
    sql, params = build_insert(table, allowed, data)
    try:
        return get_database().query_one(sql, params)['id']
    except IntegrityError as e:
        logger.info(f"Insert into {table} rejected: {e.orig}")
        raise integrity_error(e, conflict_message) from e


def update_row_db(table, allowed, data, row_id, conflict_message, touch=None):
    """Partial UPDATE; raises when nothing to update, the row is missing or a unique key clashes"""
    built = build_update(table, allowed, data, row_id, touch=touch)
    if built is None:
        raise ValidationError('No fields to update')
    sql, params = built
    try:
        updated = get_database().execute(sql, params)
    except IntegrityError as e:
        logger.info(f"Update of {table} {row_id} rejected: {e.orig}")
        raise integrity_error(e, conflict_message) from e
    return updated


def delete_restricted_db(table, column, row_id, label):
    """Delete a category/author only when no article references it"""
    db = get_database()
    with db.transaction() as conn:
        in_use = db.fetch(
            conn, f'SELECT COUNT(*) AS count FROM articles WHERE {column} = :id', {'id': row_id}
        )[0]['count']
        if in_use:
            raise ConflictError(f'Cannot delete {label} with articles')
        return db.run(conn, f'DELETE FROM {table} WHERE id = :id', {'id': row_id})


def delete_article_db(article_id):
    """Delete the article together with its comments and likes"""
    db = get_database()
    params = {'id': article_id}
    with db.transaction() as conn:
        db.run(conn, 'DELETE FROM comments WHERE article_id = :id', params)
        db.run(conn, 'DELETE FROM article_likes WHERE article_id = :id', params)
        return db.run(conn, 'DELETE FROM articles WHERE id = :id', params) > 0


def _integer_field(key, value):
    """int value, None for null/empty; anything else non-integral is a 400"""
    if value is None or value == '':
        return None
    number = parse_int(value)
    if number is None or isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{key} must be an integer')
    return number


def _clean_article_fields(data):
    fields = check_text_fields({key: data[key] for key in ARTICLE_WRITABLE if key in data}, TEXT_FIELDS)
    for key in BOOLEAN_FIELDS:
        if key in fields:
            fields[key] = parse_bool(fields[key])
    for key in INTEGER_FIELDS:
        if key in fields:
            fields[key] = _integer_field(key, fields[key])
    if 'reading_time' in fields and fields['reading_time'] is None:
        fields['reading_time'] = 0
    if 'published_at' in fields and not fields['published_at']:
        # Let the column default apply on insert
        del fields['published_at']
    for key in ('title', 'content', 'slug'):
        if key in fields and isinstance(fields[key], str):
            fields[key] = fields[key].strip()
    return fields


# ===== Article routes =====

@news_bp.route('/articles', methods=['GET'])
def get_articles():
    return jsonify(get_all_articles_db())


@news_bp.route('/articles/<int:article_id>', methods=['GET'])
def get_article(article_id):
    article = get_article_db(article_id)
    if article is None:
        raise NotFoundError('Article not found')
    return jsonify(article)


@news_bp.route('/articles', methods=['POST'])
def create_article():
    """Create new article"""
    data = _clean_article_fields(json_body())
    if not data.get('title') or not data.get('content'):
        raise ValidationError('Title and content are required')
    check_references_db(data)

    if not data.get('slug'):
        data['slug'] = create_slug(data['title'])
    else:
        data['slug'] = slugify(data['slug'])

    article_id = insert_row_db('articles', ARTICLE_WRITABLE, data, 'Slug already exists')
    get_newsroom().log.info('articles', f"Article created: {data['title']}", {'id': article_id, 'slug': data['slug']})
    return jsonify(get_article_db(article_id)), 201


@news_bp.route('/articles/<int:article_id>', methods=['PUT', 'PATCH'])
def update_article(article_id):
    """Partial update; only the fields present in the body change"""
    data = _clean_article_fields(json_body())
    if 'title' in data and not data['title']:
        raise ValidationError('Title cannot be empty')
    if 'content' in data and not data['content']:
        raise ValidationError('Content cannot be empty')
    if 'slug' in data:
        data['slug'] = slugify(data['slug'] or '')
        if not data['slug']:
            raise ValidationError('Slug cannot be empty')
    check_references_db(data)

    if not update_row_db('articles', ARTICLE_WRITABLE, data, article_id, 'Slug already exists',
                         touch='updated_at'):
        raise NotFoundError('Article not found')

    get_newsroom().log.info('articles', f"Article {article_id} updated", {'fields': sorted(data)})
    return jsonify(get_article_db(article_id))


@news_bp.route('/articles/<int:article_id>', methods=['DELETE'])
def delete_article(article_id):
    if not delete_article_db(article_id):
        raise NotFoundError('Article not found')
    get_newsroom().log.info('articles', f"Article {article_id} deleted")
    return jsonify({'ok': True})


# ===== Category routes =====

@news_bp.route('/categories', methods=['GET'])
def get_categories():
    return jsonify(get_database().query(
        'SELECT id, name, slug, description, created_at FROM categories ORDER BY name'
    ))


@news_bp.route('/categories', methods=['POST'])
def create_category():
    data = check_text_fields(json_body(), CATEGORY_WRITABLE)
    name = text_field(data, 'name')
    slug = slugify(text_field(data, 'slug'))
    if not name or not slug:
        raise ValidationError('Name and slug required')

    fields = {'name': name, 'slug': slug, 'description': data.get('description')}
    category_id = insert_row_db('categories', CATEGORY_WRITABLE, fields, 'Slug already exists')
    return jsonify(_get_category(category_id)), 201


@news_bp.route('/categories/<int:category_id>', methods=['PUT', 'PATCH'])
def update_category(category_id):
    data = check_text_fields(
        {key: value for key, value in json_body().items() if key in CATEGORY_WRITABLE}, CATEGORY_WRITABLE
    )
    if 'name' in data and not (data['name'] or '').strip():
        raise ValidationError('Name cannot be empty')
    if 'slug' in data:
        data['slug'] = slugify(data['slug'] or '')
        if not data['slug']:
            raise ValidationError('Slug cannot be empty')

    if not update_row_db('categories', CATEGORY_WRITABLE, data, category_id, 'Slug already exists'):
        raise NotFoundError('Category not found')
    return jsonify(_get_category(category_id))


@news_bp.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    if not delete_restricted_db('categories', 'category_id', category_id, 'category'):
        raise NotFoundError('Category not found')
    get_newsroom().log.info('categories', f"Category {category_id} deleted")
    return jsonify({'ok': True})


def _get_category(category_id):
    return get_database().query_one(
        'SELECT id, name, slug, description, created_at FROM categories WHERE id = :id',
        {'id': category_id},
    )


# ===== Author routes =====

@news_bp.route('/authors', methods=['GET'])
def get_authors():
    return jsonify(get_database().query(
        'SELECT id, name, email, bio, avatar_url, created_at FROM authors ORDER BY name'
    ))


@news_bp.route('/authors', methods=['POST'])
def create_author():
    data = check_text_fields(json_body(), AUTHOR_WRITABLE)
    name = text_field(data, 'name')
    if not name:
        raise ValidationError('Name is required')

    fields = {
        'name': name,
        'email': (data.get('email') or '').strip().lower() or None,
        'bio': data.get('bio'),
        'avatar_url': data.get('avatar_url'),
    }
    author_id = insert_row_db('authors', AUTHOR_WRITABLE, fields, 'Email already exists')
    return jsonify(_get_author(author_id)), 201


@news_bp.route('/authors/<int:author_id>', methods=['PUT', 'PATCH'])
def update_author(author_id):
    data = check_text_fields(
        {key: value for key, value in json_body().items() if key in AUTHOR_WRITABLE}, AUTHOR_WRITABLE
    )
    if 'name' in data and not (data['name'] or '').strip():
        raise ValidationError('Name cannot be empty')
    if 'email' in data:
        data['email'] = (data['email'] or '').strip().lower() or None

    if not update_row_db('authors', AUTHOR_WRITABLE, data, author_id, 'Email already exists'):
        raise NotFoundError('Author not found')
    return jsonify(_get_author(author_id))


@news_bp.route('/authors/<int:author_id>', methods=['DELETE'])
def delete_author(author_id):
    if not delete_restricted_db('authors', 'author_id', author_id, 'author'):
        raise NotFoundError('Author not found')
    get_newsroom().log.info('authors', f"Author {author_id} deleted")
    return jsonify({'ok': True})


def _get_author(author_id):
    return get_database().query_one(
        'SELECT id, name, email, bio, avatar_url, created_at FROM authors WHERE id = :id',
        {'id': author_id},
    )
