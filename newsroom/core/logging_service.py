"""
Centralized logging service for the Newsroom API.
Provides structured logging with database storage and easy integration.
"""

import json
import logging
import traceback
from datetime import datetime, timedelta

from flask import has_app_context, has_request_context, request

logger = logging.getLogger(__name__)


class LoggingService:
    """Application-wide log sink writing to the app_logs table"""

    def __init__(self, database=None):
        self.database = database

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        user_agent = request.headers.get('User-Agent', '')[:500]
        return ip_address, user_agent, request.path

    def log(self, level, source, message, details=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (articles, subscribers, admin, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
        """
        level = level.upper()
        logger.log(getattr(logging, level, logging.INFO), f"[{source}] {message}")

        if self.database is None or not has_app_context():
            return

        if isinstance(details, dict):
            details = json.dumps(details, indent=2, default=str)

        ip_address, user_agent, request_path = self._get_request_context()

        try:
            self.database.execute("""
                INSERT INTO app_logs
                (timestamp, level, source, message, details, ip_address, user_agent, request_path)
                VALUES (:timestamp, :level, :source, :message, :details, :ip_address, :user_agent, :request_path)
            """, {
                'timestamp': datetime.now().isoformat(),
                'level': level,
                'source': source,
                'message': message,
                'details': details,
                'ip_address': ip_address,
                'user_agent': user_agent,
                'request_path': request_path,
            })
        except Exception as e:
            # Fallback to console logging if database fails
            logger.error(f"Logging service error: {e}")
            if details:
                logger.error(f"Details: {details}")

    def info(self, source, message, details=None):
        self.log('INFO', source, message, details)

    def warning(self, source, message, details=None):
        self.log('WARNING', source, message, details)

    def error(self, source, message, details=None):
        self.log('ERROR', source, message, details)

    def log_error_with_traceback(self, source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc(),
        }
        if details:
            error_details['additional_details'] = details

        self.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    def log_security_event(self, message, details=None):
        """Log security-related events (failed logins, rejected tokens)"""
        self.warning('security', message, details)

    def recent(self, level=None, limit=50):
        """Most recent log entries, optionally filtered by level"""
        sql = 'SELECT id, timestamp, level, source, message, details, request_path FROM app_logs'
        params = {'limit': limit}
        if level:
            sql += ' WHERE level = :level'
            params['level'] = level.upper()
        sql += ' ORDER BY id DESC LIMIT :limit'
        return self.database.query(sql, params)

    def cleanup_old_logs(self, days_to_keep=30):
        """Clean up old log entries"""
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        try:
            deleted_count = self.database.execute(
                'DELETE FROM app_logs WHERE timestamp < :cutoff', {'cutoff': cutoff_iso}
            )
            self.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count
        except Exception as e:
            self.error('system', f"Failed to cleanup old logs: {e}")
            return 0
