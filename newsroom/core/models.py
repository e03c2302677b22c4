"""
Database Schema
===============

Table definitions for the news site. Route handlers talk to these tables
with parameterized SQL through ``Database``; the models are only used to
create the schema (``db.create_all()``) so that the same definitions work on
SQLite and PostgreSQL.
"""

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import false, func, true

db = SQLAlchemy()


class Category(db.Model):
    __tablename__ = 'categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, server_default=func.now())


class Author(db.Model):
    __tablename__ = 'authors'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True)
    bio = db.Column(db.Text)
    avatar_url = db.Column(db.String(1000))
    created_at = db.Column(db.DateTime, server_default=func.now())


class Article(db.Model):
    __tablename__ = 'articles'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    excerpt = db.Column(db.Text)
    content = db.Column(db.Text, nullable=False)
    featured_image = db.Column(db.String(1000))
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('authors.id'), index=True)
    published_at = db.Column(db.DateTime, server_default=func.now(), index=True)
    reading_time = db.Column(db.Integer, nullable=False, server_default='0')
    views = db.Column(db.Integer, nullable=False, server_default='0')
    is_featured = db.Column(db.Boolean, nullable=False, server_default=false())
    is_breaking = db.Column(db.Boolean, nullable=False, server_default=false())
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now())


class Subscriber(db.Model):
    __tablename__ = 'subscribers'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), server_default='')
    is_verified = db.Column(db.Boolean, nullable=False, server_default=false())
    subscribed_at = db.Column(db.DateTime, server_default=func.now())
    # NULL while active; set on unsubscribe, cleared again on re-subscribe
    unsubscribed_at = db.Column(db.DateTime)


class Comment(db.Model):
    __tablename__ = 'comments'
    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('articles.id'), nullable=False, index=True)
    subscriber_id = db.Column(db.Integer, db.ForeignKey('subscribers.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    is_approved = db.Column(db.Boolean, nullable=False, server_default=true())
    created_at = db.Column(db.DateTime, server_default=func.now())


class ArticleLike(db.Model):
    __tablename__ = 'article_likes'
    __table_args__ = (
        db.UniqueConstraint('article_id', 'subscriber_id', name='uq_article_likes_pair'),
    )
    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('articles.id'), nullable=False, index=True)
    subscriber_id = db.Column(db.Integer, db.ForeignKey('subscribers.id'), nullable=False)
    created_at = db.Column(db.DateTime, server_default=func.now())


class Poll(db.Model):
    __tablename__ = 'polls'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False, server_default='voting')
    status = db.Column(db.String(20), nullable=False, server_default='active')
    start_date = db.Column(db.DateTime, server_default=func.now())
    end_date = db.Column(db.DateTime)
    show_results = db.Column(db.Boolean, nullable=False, server_default=true())
    allow_multiple = db.Column(db.Boolean, nullable=False, server_default=false())
    created_at = db.Column(db.DateTime, server_default=func.now())


class PollOption(db.Model):
    __tablename__ = 'poll_options'
    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey('polls.id'), nullable=False, index=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(1000))
    # Denormalized count, kept in step with poll_votes inside the vote transaction
    votes_count = db.Column(db.Integer, nullable=False, server_default='0')
    display_order = db.Column(db.Integer, nullable=False, server_default='0')


class PollVote(db.Model):
    __tablename__ = 'poll_votes'
    __table_args__ = (
        db.UniqueConstraint('poll_id', 'phone_number', name='uq_poll_votes_phone'),
    )
    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey('polls.id'), nullable=False, index=True)
    option_id = db.Column(db.Integer, db.ForeignKey('poll_options.id'), nullable=False)
    phone_number = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, server_default=func.now())


class AppLog(db.Model):
    __tablename__ = 'app_logs'
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.String(40), nullable=False, index=True)
    level = db.Column(db.String(20), nullable=False, index=True)
    source = db.Column(db.String(100), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    details = db.Column(db.Text)
    ip_address = db.Column(db.String(100))
    user_agent = db.Column(db.Text)
    request_path = db.Column(db.String(500))
