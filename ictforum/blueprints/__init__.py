"""
ICT Forum Backend
Blueprint registry and request-parsing helpers shared by the blueprints.
"""

from flask import request

from ictforum.utils.helpers import page_params


def request_page(default_limit=20, max_limit=100):
    """``(page, limit)`` from the query string, clamped.

    page  — 1-based, values below 1 become 1
    limit — clamped to [1, max_limit]
    """
    return page_params(request.args, default_limit=default_limit, max_limit=max_limit)


def request_data() -> dict:
    """Request body as a dict: JSON when sent as JSON, else the form fields."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def request_file(field: str):
    """The uploaded file under ``field``, or None when absent or empty."""
    file = request.files.get(field)
    if file is None or not file.filename:
        return None
    return file
