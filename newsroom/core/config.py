import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _database_url(db_dir):
    url = os.getenv('DATABASE_URL') or os.getenv('NEON_DATABASE_URL')
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql+psycopg2://', 1)
    return url or ('sqlite:///' + os.path.join(db_dir, 'news.db'))


class Config:
    """
    Base configuration for the Newsroom API.
    Everything is read from environment variables (a .env file is honoured).
    """
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))
    DATABASE_URL = _database_url(DB_DIR)

    # Admin auth (single shared-secret account)
    ADMIN_USER = os.getenv('ADMIN_USER', 'admin')
    ADMIN_PASS = os.getenv('ADMIN_PASS', 'password')
    ADMIN_JWT_SECRET = os.getenv('ADMIN_JWT_SECRET', 'change-me')
    ADMIN_TOKEN_HOURS = int(os.getenv('ADMIN_TOKEN_HOURS', '8'))

    # Email settings (contact form + welcome mail)
    SMTP_HOST = os.getenv('SMTP_HOST', 'mail.privateemail.com')
    SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
    SMTP_USER = os.getenv('SMTP_USER')
    SMTP_PASS = os.getenv('SMTP_PASS')
    SMTP_FROM = os.getenv('SMTP_FROM', 'info@mtkenyanews.com')
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'MT Kenya News')

    # Image host (S3 compatible, DigitalOcean Spaces by default)
    SPACES_REGION = os.getenv('SPACES_REGION', 'fra1')
    SPACES_BUCKET = os.getenv('SPACES_BUCKET')
    SPACES_KEY = os.getenv('SPACES_KEY')
    SPACES_SECRET = os.getenv('SPACES_SECRET')
    SPACES_ENDPOINT = os.getenv('SPACES_ENDPOINT')
    SPACES_FOLDER = os.getenv('SPACES_FOLDER', 'mtkenyanews')

    # Content behaviour
    COMMENTS_REQUIRE_APPROVAL = _env_bool('COMMENTS_REQUIRE_APPROVAL', False)
    DEFAULT_LIST_LIMIT = int(os.getenv('DEFAULT_LIST_LIMIT', '5'))
    SEARCH_LIMIT = int(os.getenv('SEARCH_LIMIT', '50'))

    # Port for local server
    PORT = int(os.getenv('PORT', '4000'))

    @classmethod
    def to_flask_config(cls):
        """Return every upper-case setting as a dict for app.config"""
        values = {key: getattr(cls, key) for key in dir(cls) if key.isupper()}
        values['SQLALCHEMY_DATABASE_URI'] = cls.DATABASE_URL
        values['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
        return values
