"""
Engagement Routes
=================

Provides:
- GET /api/articles/<id>/comments -- approved comments, newest first
- POST /api/articles/<id>/comments -- add a comment (active subscribers only)
- GET /api/articles/<id>/likes -- like count and whether ?email= liked it
- POST /api/articles/<id>/like -- toggle a like (active subscribers only)
"""

import logging

from flask import current_app, jsonify, request

from newsroom.core.context import get_database, get_newsroom
from newsroom.core.errors import ForbiddenError, NotFoundError, ValidationError
from newsroom.core.payload import json_body, text_field
from newsroom.modules.subscribers import get_active_subscriber_db, normalize_email
from . import engagement_bp

logger = logging.getLogger(__name__)


# ===== Database helpers =====

def article_exists_db(article_id):
    return get_database().query_one('SELECT id FROM articles WHERE id = :id', {'id': article_id}) is not None


def get_comments_db(article_id):
    return get_database().query(
        'SELECT c.id, c.content, c.created_at, s.name AS author_name '
        'FROM comments c JOIN subscribers s ON c.subscriber_id = s.id '
        'WHERE c.article_id = :article_id AND c.is_approved = :approved '
        'ORDER BY c.created_at DESC, c.id DESC',
        {'article_id': article_id, 'approved': True},
    )


def add_comment_db(article_id, subscriber_id, content, approved):
    row = get_database().query_one(
        'INSERT INTO comments (article_id, subscriber_id, content, is_approved) '
        'VALUES (:article_id, :subscriber_id, :content, :approved) RETURNING id',
        {'article_id': article_id, 'subscriber_id': subscriber_id,
         'content': content, 'approved': approved},
    )
    return row['id']


def count_likes_db(article_id, conn=None):
    sql = 'SELECT COUNT(*) AS count FROM article_likes WHERE article_id = :article_id'
    db = get_database()
    if conn is not None:
        return int(db.fetch(conn, sql, {'article_id': article_id})[0]['count'])
    return int(db.scalar(sql, {'article_id': article_id}))


def user_liked_db(article_id, email):
    row = get_database().query_one(
        'SELECT 1 AS liked FROM article_likes al JOIN subscribers s ON al.subscriber_id = s.id '
        'WHERE al.article_id = :article_id AND s.email = :email',
        {'article_id': article_id, 'email': email},
    )
    return row is not None


def toggle_like_db(article_id, subscriber_id):
    """
    Flip the like for (article, subscriber) in one transaction.

    The delete decides the direction; the insert tolerates a concurrent
    insert of the same pair through the unique constraint.
    Returns (liked, count).
    """
    db = get_database()
    params = {'article_id': article_id, 'subscriber_id': subscriber_id}
    with db.transaction() as conn:
        removed = db.run(
            conn,
            'DELETE FROM article_likes WHERE article_id = :article_id AND subscriber_id = :subscriber_id',
            params,
        )
        if not removed:
            db.run(
                conn,
                'INSERT INTO article_likes (article_id, subscriber_id) VALUES (:article_id, :subscriber_id) '
                'ON CONFLICT (article_id, subscriber_id) DO NOTHING',
                params,
            )
        return not removed, count_likes_db(article_id, conn)


def _require_article(article_id):
    if not article_exists_db(article_id):
        raise NotFoundError('Article not found')


# ===== Routes =====

@engagement_bp.route('/<int:article_id>/comments', methods=['GET'])
def get_comments(article_id):
    return jsonify(get_comments_db(article_id))


@engagement_bp.route('/<int:article_id>/comments', methods=['POST'])
def add_comment(article_id):
    data = json_body()
    email = normalize_email(data.get('email'))
    content = text_field(data, 'content')

    if not email or not content:
        raise ValidationError('Email and content are required')

    subscriber = get_active_subscriber_db(email)
    if subscriber is None:
        raise ForbiddenError('You must be subscribed to comment. Please subscribe first.')

    _require_article(article_id)

    approved = not current_app.config.get('COMMENTS_REQUIRE_APPROVAL', False)
    comment_id = add_comment_db(article_id, subscriber['id'], content, approved)
    get_newsroom().log.info('comments', f"Comment {comment_id} on article {article_id} by {email}",
                            {'approved': approved})

    return jsonify({'message': 'Comment added successfully', 'id': comment_id, 'is_approved': approved})


@engagement_bp.route('/<int:article_id>/likes', methods=['GET'])
def get_likes(article_id):
    email = normalize_email(request.args.get('email'))
    user_liked = user_liked_db(article_id, email) if email else False
    return jsonify({'count': count_likes_db(article_id), 'userLiked': user_liked})


@engagement_bp.route('/<int:article_id>/like', methods=['POST'])
def toggle_like(article_id):
    data = json_body()
    email = normalize_email(data.get('email'))
    if not email:
        raise ValidationError('Email is required')

    subscriber = get_active_subscriber_db(email)
    if subscriber is None:
        raise ForbiddenError('You must be subscribed to like articles')

    _require_article(article_id)

    liked, count = toggle_like_db(article_id, subscriber['id'])
    logger.debug(f"Article {article_id} {'liked' if liked else 'unliked'} by subscriber {subscriber['id']}")
    return jsonify({'liked': liked, 'message': 'Liked' if liked else 'Unliked', 'count': count})
