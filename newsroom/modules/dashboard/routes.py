"""
Admin Dashboard Routes
======================

Provides (bearer token required):
- GET /api/admin/stats -- top 10 articles by views plus site totals
- GET /api/admin/comments -- all comments with article and subscriber
- PATCH /api/admin/comments/<id>/approve -- approve a comment
- DELETE /api/admin/comments/<id> -- delete a comment
- GET /api/admin/subscribers -- all subscribers with comment/like counts
- DELETE /api/admin/subscribers/<id> -- delete a subscriber and their activity
- GET /api/admin/logs -- recent application log entries
"""

from flask import jsonify, request

from newsroom.core.context import get_database, get_newsroom
from newsroom.core.errors import NotFoundError
from newsroom.core.query import parse_int
from . import dashboard_bp

TOP_ARTICLES = 10


def get_stats_db():
    db = get_database()
    top = db.query(
        'SELECT id, title, views FROM articles ORDER BY views DESC, id DESC LIMIT :limit',
        {'limit': TOP_ARTICLES},
    )
    totals = db.query_one(
        'SELECT COUNT(*) AS articles_count, COALESCE(SUM(views), 0) AS total_views FROM articles'
    )
    return {
        'top': top,
        'totals': {
            'articles_count': int(totals['articles_count']),
            'total_views': int(totals['total_views']),
        },
        'subscribers_count': int(db.scalar(
            'SELECT COUNT(*) FROM subscribers WHERE unsubscribed_at IS NULL'
        )),
        'comments_count': int(db.scalar('SELECT COUNT(*) FROM comments')),
        'pending_comments': int(db.scalar(
            'SELECT COUNT(*) FROM comments WHERE is_approved = :approved', {'approved': False}
        )),
        'polls_count': int(db.scalar('SELECT COUNT(*) FROM polls')),
    }


@dashboard_bp.route('/stats', methods=['GET'])
def stats():
    return jsonify(get_stats_db())


# ===== Comment moderation =====

@dashboard_bp.route('/comments', methods=['GET'])
def get_comments():
    rows = get_database().query(
        'SELECT c.id, c.article_id, c.content, c.is_approved, c.created_at, '
        'a.title AS article_title, a.slug AS article_slug, '
        's.name AS subscriber_name, s.email AS subscriber_email '
        'FROM comments c '
        'LEFT JOIN articles a ON c.article_id = a.id '
        'LEFT JOIN subscribers s ON c.subscriber_id = s.id '
        'ORDER BY c.created_at DESC, c.id DESC'
    )
    for row in rows:
        row['is_approved'] = bool(row['is_approved'])
    return jsonify(rows)


@dashboard_bp.route('/comments/<int:comment_id>/approve', methods=['PATCH'])
def approve_comment(comment_id):
    updated = get_database().execute(
        'UPDATE comments SET is_approved = :approved WHERE id = :id',
        {'approved': True, 'id': comment_id},
    )
    if not updated:
        raise NotFoundError('Comment not found')
    get_newsroom().log.info('comments', f"Comment {comment_id} approved")
    return jsonify({'ok': True})


@dashboard_bp.route('/comments/<int:comment_id>', methods=['DELETE'])
def delete_comment(comment_id):
    if not get_database().execute('DELETE FROM comments WHERE id = :id', {'id': comment_id}):
        raise NotFoundError('Comment not found')
    get_newsroom().log.info('comments', f"Comment {comment_id} deleted")
    return jsonify({'ok': True})


# ===== Subscriber management =====

@dashboard_bp.route('/subscribers', methods=['GET'])
def get_subscribers():
    rows = get_database().query(
        'SELECT s.id, s.email, s.name, s.is_verified, s.subscribed_at, s.unsubscribed_at, '
        '(SELECT COUNT(*) FROM comments c WHERE c.subscriber_id = s.id) AS comment_count, '
        '(SELECT COUNT(*) FROM article_likes l WHERE l.subscriber_id = s.id) AS like_count '
        'FROM subscribers s ORDER BY s.subscribed_at DESC, s.id DESC'
    )
    for row in rows:
        row['is_verified'] = bool(row['is_verified'])
        row['comment_count'] = int(row['comment_count'])
        row['like_count'] = int(row['like_count'])
    return jsonify(rows)


@dashboard_bp.route('/subscribers/<int:subscriber_id>', methods=['DELETE'])
def delete_subscriber(subscriber_id):
    """Hard delete, removing the subscriber's comments and likes first"""
    db = get_database()
    params = {'id': subscriber_id}
    with db.transaction() as conn:
        db.run(conn, 'DELETE FROM comments WHERE subscriber_id = :id', params)
        db.run(conn, 'DELETE FROM article_likes WHERE subscriber_id = :id', params)
        deleted = db.run(conn, 'DELETE FROM subscribers WHERE id = :id', params)
    if not deleted:
        raise NotFoundError('Subscriber not found')
    get_newsroom().log.info('subscribers', f"Subscriber {subscriber_id} deleted by admin")
    return jsonify({'ok': True})


# ===== Logs =====

@dashboard_bp.route('/logs', methods=['GET'])
def get_logs():
    level = request.args.get('level') or None
    limit = parse_int(request.args.get('limit'), 50, minimum=1, maximum=500)
    return jsonify(get_newsroom().log.recent(level=level, limit=limit))
