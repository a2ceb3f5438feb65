"""
ICT Forum Backend
Shared SQLAlchemy instance.

Model modules import ``db`` from here; the app factory imports every model
module once so ``db.create_all()`` and Flask-Migrate see the full metadata.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
