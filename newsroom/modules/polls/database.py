import re
from datetime import datetime, timezone

from newsroom.core.context import get_database
from newsroom.core.errors import ConflictError
from newsroom.core.query import POLL_WRITABLE, build_insert, build_update

POLL_COLUMNS = (
    'id', 'title', 'description', 'type', 'status', 'start_date', 'end_date',
    'show_results', 'allow_multiple', 'created_at',
)
OPTION_COLUMNS = ('id', 'poll_id', 'title', 'description', 'image_url', 'votes_count', 'display_order')
POLL_STATUSES = ('draft', 'active', 'closed')
POLL_TYPES = ('voting', 'nomination')

_POLL_SELECT = 'SELECT ' + ', '.join(POLL_COLUMNS) + ' FROM polls'
_OPTION_SELECT = 'SELECT ' + ', '.join(OPTION_COLUMNS) + ' FROM poll_options'


def normalize_phone(phone):
    """
    Canonical digits for a Kenyan mobile number, or None if invalid.

    Accepts 10 digits starting 07/01 or 12 digits starting 254, with any
    punctuation. Local numbers are rewritten to the 254 form so both
    spellings of one number count as the same voter.
    """
    digits = re.sub(r'\D', '', phone or '')
    if len(digits) == 10 and digits[:2] in ('07', '01'):
        return '254' + digits[1:]
    if len(digits) == 12 and digits.startswith('254'):
        return digits
    return None


def parse_datetime(value):
    """Naive UTC datetime from a stored value (datetime or ISO string), or None"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def results_visible(poll):
    return bool(poll['show_results']) or poll['status'] == 'closed'


class PollDatabase:
    """Data access for polls, their options and votes"""

    @staticmethod
    def _shape_poll(row):
        poll = dict(row)
        poll['show_results'] = bool(poll['show_results'])
        poll['allow_multiple'] = bool(poll['allow_multiple'])
        return poll

    @staticmethod
    def _shape_option(row, hide_counts=False):
        option = dict(row)
        option['votes_count'] = None if hide_counts else int(option['votes_count'] or 0)
        return option

    @staticmethod
    def get_polls(status=None, public=False):
        """Polls newest first; public listings never include drafts"""
        clauses = []
        params = {}
        if status:
            clauses.append('status = :status')
            params['status'] = status
        if public:
            clauses.append('status <> :draft')
            params['draft'] = 'draft'
        sql = _POLL_SELECT
        if clauses:
            sql += ' WHERE ' + ' AND '.join(clauses)
        sql += ' ORDER BY created_at DESC, id DESC'
        return [PollDatabase._shape_poll(row) for row in get_database().query(sql, params)]

    @staticmethod
    def get_poll(poll_id, public=False):
        row = get_database().query_one(_POLL_SELECT + ' WHERE id = :id', {'id': poll_id})
        if row is None or (public and row['status'] == 'draft'):
            return None
        return PollDatabase._shape_poll(row)

    @staticmethod
    def get_options(poll_id, hide_counts=False):
        rows = get_database().query(
            _OPTION_SELECT + ' WHERE poll_id = :poll_id ORDER BY display_order, id',
            {'poll_id': poll_id},
        )
        return [PollDatabase._shape_option(row, hide_counts) for row in rows]

    @staticmethod
    def total_votes(poll_id):
        return int(get_database().scalar(
            'SELECT COUNT(*) FROM poll_votes WHERE poll_id = :poll_id', {'poll_id': poll_id}
        ) or 0)

    @staticmethod
    def with_results(poll, public=True):
        """Attach options and total_votes; public views respect show_results"""
        hide = public and not results_visible(poll)
        poll['options'] = PollDatabase.get_options(poll['id'], hide_counts=hide)
        poll['total_votes'] = PollDatabase.total_votes(poll['id'])
        return poll

    @staticmethod
    def option_belongs_to_poll(option_id, poll_id):
        row = get_database().query_one(
            'SELECT id FROM poll_options WHERE id = :option_id AND poll_id = :poll_id',
            {'option_id': option_id, 'poll_id': poll_id},
        )
        return row is not None

    @staticmethod
    def record_vote(poll_id, option_id, phone_number):
        """
        Store one vote and bump the option counter atomically.

        The (poll_id, phone_number) unique constraint decides duplicates, so
        concurrent votes from one number cannot both land.
        """
        db = get_database()
        with db.transaction() as conn:
            inserted = db.fetch(
                conn,
                'INSERT INTO poll_votes (poll_id, option_id, phone_number) '
                'VALUES (:poll_id, :option_id, :phone_number) '
                'ON CONFLICT (poll_id, phone_number) DO NOTHING RETURNING id',
                {'poll_id': poll_id, 'option_id': option_id, 'phone_number': phone_number},
            )
            if not inserted:
                raise ConflictError('You have already voted in this poll')
            db.run(
                conn,
                'UPDATE poll_options SET votes_count = votes_count + 1 '
                'WHERE id = :option_id AND poll_id = :poll_id',
                {'option_id': option_id, 'poll_id': poll_id},
            )
            return inserted[0]['id']

    @staticmethod
    def create_poll(data, options):
        """Insert the poll and its options in one transaction; returns the poll id"""
        db = get_database()
        sql, params = build_insert('polls', POLL_WRITABLE, data)
        with db.transaction() as conn:
            poll_id = db.fetch(conn, sql, params)[0]['id']
            for order, option in enumerate(options):
                db.run(
                    conn,
                    'INSERT INTO poll_options (poll_id, title, description, image_url, display_order) '
                    'VALUES (:poll_id, :title, :description, :image_url, :display_order)',
                    {
                        'poll_id': poll_id,
                        'title': option['title'],
                        'description': option.get('description') or None,
                        'image_url': option.get('image_url') or None,
                        'display_order': order,
                    },
                )
        return poll_id

    @staticmethod
    def update_poll(poll_id, data):
        """Partial update; None when no writable field was given, else rows touched"""
        built = build_update('polls', POLL_WRITABLE, data, poll_id)
        if built is None:
            return None
        sql, params = built
        return get_database().execute(sql, params)

    @staticmethod
    def delete_poll(poll_id):
        db = get_database()
        params = {'poll_id': poll_id}
        with db.transaction() as conn:
            db.run(conn, 'DELETE FROM poll_votes WHERE poll_id = :poll_id', params)
            db.run(conn, 'DELETE FROM poll_options WHERE poll_id = :poll_id', params)
            return db.run(conn, 'DELETE FROM polls WHERE id = :poll_id', params)

    @staticmethod
    def get_votes(poll_id):
        return get_database().query(
            'SELECT v.id, v.option_id, o.title AS option_title, v.phone_number, v.created_at '
            'FROM poll_votes v JOIN poll_options o ON v.option_id = o.id '
            'WHERE v.poll_id = :poll_id ORDER BY v.created_at DESC, v.id DESC',
            {'poll_id': poll_id},
        )
