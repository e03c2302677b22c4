from contextlib import contextmanager

from sqlalchemy import text

from .models import db


class Database:
    """
    Thin data access helper over the Flask-SQLAlchemy engine.

    Every call checks a connection out of the engine's pool, runs one
    parameterized statement inside a transaction and returns the connection
    to the pool when the block exits, whether or not the statement failed.
    Must be used inside an application context.
    """

    def __init__(self, sqlalchemy=None):
        self._db = sqlalchemy or db

    @property
    def engine(self):
        return self._db.engine

    @contextmanager
    def transaction(self):
        """Yield a connection; commit on success, roll back on any exception"""
        with self.engine.begin() as conn:
            yield conn

    @staticmethod
    def rows(result):
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]

    def fetch(self, conn, sql, params=None):
        """Run a statement on a connection from transaction() and return row dicts"""
        return self.rows(conn.execute(text(sql), params or {}))

    def run(self, conn, sql, params=None):
        """Run a statement on a connection from transaction() and return the rowcount"""
        return conn.execute(text(sql), params or {}).rowcount

    def query(self, sql, params=None):
        """Execute a statement and return its rows as a list of dicts"""
        with self.transaction() as conn:
            return self.rows(conn.execute(text(sql), params or {}))

    def query_one(self, sql, params=None):
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def scalar(self, sql, params=None):
        with self.transaction() as conn:
            return conn.execute(text(sql), params or {}).scalar()

    def execute(self, sql, params=None):
        """Execute a statement and return the number of affected rows"""
        with self.transaction() as conn:
            return conn.execute(text(sql), params or {}).rowcount

    def init_db(self):
        """Create any missing tables"""
        self._db.create_all()
