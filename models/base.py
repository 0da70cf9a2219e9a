"""
Database Base Module

Creates the SQLAlchemy database instance that all models inherit from.
This is separate to avoid circular imports.
"""

from contextlib import contextmanager
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

# Create the SQLAlchemy instance
# This will be initialized with the Flask app in app.py
db = SQLAlchemy()


def utcnow():
    return datetime.utcnow()


@contextmanager
def atomic():
    """
    Run a multi-step write as one unit: commit on success, roll back on error.

    Nothing written inside the block survives a failure.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
