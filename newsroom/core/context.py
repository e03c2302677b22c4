from flask import current_app


def get_newsroom():
    """The Newsroom extension bound to the current app (database, email, storage, tokens, log)"""
    return current_app.extensions['newsroom']


def get_database():
    return get_newsroom().database
