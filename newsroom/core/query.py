"""
Query Construction
==================

Pure helpers that turn request input into ``(sql, params)`` pairs.
User input only ever reaches the database as a bound parameter; column and
table names come from the whitelists below.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

ARTICLE_COLUMNS = (
    'id', 'title', 'slug', 'excerpt', 'content', 'featured_image', 'category_id',
    'author_id', 'published_at', 'reading_time', 'views', 'is_featured',
    'is_breaking', 'created_at', 'updated_at',
)

# Keys accepted from admin article payloads
ARTICLE_WRITABLE = (
    'title', 'slug', 'excerpt', 'content', 'featured_image', 'category_id',
    'author_id', 'published_at', 'reading_time', 'is_featured', 'is_breaking',
)

CATEGORY_WRITABLE = ('name', 'slug', 'description')
AUTHOR_WRITABLE = ('name', 'email', 'bio', 'avatar_url')
POLL_WRITABLE = ('title', 'description', 'type', 'status', 'end_date', 'show_results', 'allow_multiple')

_CATEGORY_FIELDS = ('id', 'name', 'slug', 'description')
_AUTHOR_FIELDS = ('id', 'name', 'bio', 'avatar_url')

ARTICLE_SELECT = (
    ', '.join(f'a.{col} AS {col}' for col in ARTICLE_COLUMNS) + ', '
    + ', '.join(f'c.{col} AS category__{col}' for col in _CATEGORY_FIELDS) + ', '
    + ', '.join(f'au.{col} AS author__{col}' for col in _AUTHOR_FIELDS)
)

ARTICLE_FROM = (
    'FROM articles a '
    'LEFT JOIN categories c ON a.category_id = c.id '
    'LEFT JOIN authors au ON a.author_id = au.id'
)

_IDENTIFIER = re.compile(r'^[a-z_][a-z0-9_]*$')


def parse_bool(value):
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def parse_int(value, default=None, minimum=None, maximum=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if minimum is not None and number < minimum:
        return default
    if maximum is not None and number > maximum:
        number = maximum
    return number


@dataclass
class ArticleFilters:
    """Optional filters for article listings"""
    category_id: Optional[int] = None
    featured: bool = False
    trending: bool = False
    breaking: bool = False
    exclude_id: Optional[int] = None
    limit: int = 5

    @classmethod
    def from_args(cls, args, default_limit=5, max_limit=100):
        return cls(
            category_id=parse_int(args.get('category_id')),
            featured=parse_bool(args.get('featured')),
            trending=parse_bool(args.get('trending')),
            breaking=parse_bool(args.get('breaking')),
            exclude_id=parse_int(args.get('exclude_id')),
            limit=parse_int(args.get('limit'), default_limit, minimum=1, maximum=max_limit),
        )


def build_article_query(filters: ArticleFilters) -> Tuple[str, Dict[str, Any]]:
    """Build the joined article listing statement for the given filters"""
    clauses = []
    params: Dict[str, Any] = {}

    if filters.category_id is not None:
        clauses.append('a.category_id = :category_id')
        params['category_id'] = filters.category_id
    if filters.featured:
        clauses.append('a.is_featured = :is_featured')
        params['is_featured'] = True
    if filters.breaking:
        clauses.append('a.is_breaking = :is_breaking')
        params['is_breaking'] = True
    if filters.exclude_id is not None:
        clauses.append('a.id <> :exclude_id')
        params['exclude_id'] = filters.exclude_id

    sql = f'SELECT {ARTICLE_SELECT} {ARTICLE_FROM}'
    if clauses:
        sql += ' WHERE ' + ' AND '.join(clauses)

    if filters.trending:
        sql += ' ORDER BY a.views DESC, a.published_at DESC'
    else:
        sql += ' ORDER BY a.published_at DESC, a.id DESC'

    sql += ' LIMIT :limit'
    params['limit'] = filters.limit
    return sql, params


def build_search_query(term, limit=50):
    """Case-insensitive substring match on title, excerpt and content"""
    escaped = term.lower().replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    sql = (
        f'SELECT {ARTICLE_SELECT} {ARTICLE_FROM} '
        "WHERE LOWER(a.title) LIKE :pattern ESCAPE '\\' "
        "OR LOWER(a.excerpt) LIKE :pattern ESCAPE '\\' "
        "OR LOWER(a.content) LIKE :pattern ESCAPE '\\' "
        'ORDER BY a.published_at DESC, a.id DESC LIMIT :limit'
    )
    return sql, {'pattern': f'%{escaped}%', 'limit': limit}


def build_update(table: str, allowed: Iterable[str], data: Dict[str, Any], row_id,
                 touch: Optional[str] = None) -> Optional[Tuple[str, Dict[str, Any]]]:
    """
    Build a partial UPDATE from the keys present in ``data``.

    Only keys listed in ``allowed`` become columns. The id predicate is
    appended last. Returns None when no allowed key is present.
    """
    if not _IDENTIFIER.match(table):
        raise ValueError(f'Invalid table name: {table}')

    assignments = []
    params: Dict[str, Any] = {}
    for key in allowed:
        if key in data:
            assignments.append(f'{key} = :{key}')
            params[key] = data[key]

    if not assignments:
        return None

    if touch:
        assignments.append(f'{touch} = CURRENT_TIMESTAMP')

    params['row_id'] = row_id
    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE id = :row_id"
    return sql, params


def build_insert(table: str, allowed: Iterable[str], data: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """INSERT only the allowed keys present in ``data`` and return the new id"""
    if not _IDENTIFIER.match(table):
        raise ValueError(f'Invalid table name: {table}')

    columns = [key for key in allowed if key in data]
    params = {key: data[key] for key in columns}
    if columns:
        sql = (f"INSERT INTO {table} ({', '.join(columns)}) "
               f"VALUES ({', '.join(':' + col for col in columns)}) RETURNING id")
    else:
        sql = f'INSERT INTO {table} DEFAULT VALUES RETURNING id'
    return sql, params


def article_from_row(row):
    """Shape a flat joined row into an article with nested category and author"""
    if row is None:
        return None

    article = {col: row.get(col) for col in ARTICLE_COLUMNS}
    article['is_featured'] = bool(article['is_featured'])
    article['is_breaking'] = bool(article['is_breaking'])
    article['views'] = article['views'] or 0

    category = {col: row.get(f'category__{col}') for col in _CATEGORY_FIELDS}
    author = {col: row.get(f'author__{col}') for col in _AUTHOR_FIELDS}
    article['categories'] = category if category['id'] is not None else None
    article['authors'] = author if author['id'] is not None else None
    return article


def slugify(value):
    """URL-friendly slug: lowercase words joined by hyphens"""
    slug = re.sub(r'[^\w\s-]', '', (value or '').lower())
    slug = re.sub(r'[-\s_]+', '-', slug)
    return slug.strip('-')
