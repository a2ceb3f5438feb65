"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi create-admin --email admin@example.com
    flask --app wsgi seed-departments
    gunicorn wsgi:app
"""

from ictforum import create_app

app = create_app()
