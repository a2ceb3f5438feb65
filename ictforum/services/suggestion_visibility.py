"""
Suggestion projections for HTTP responses.

Every suggestion that leaves the API goes through one of these functions:

    to_public_view(s)    full record; ``user`` removed when anonymous
    to_tracking_view(s)  id/status/category/actionTaken/timestamps only

The anonymity rule does not depend on who is asking: staff never see the
submitter of an anonymous suggestion either (none is stored in the first
place, the projection makes sure none is exposed).
"""


def to_public_view(suggestion) -> dict:
    """Full projection of a suggestion; ``user`` is dropped when anonymous."""
    data = suggestion.to_dict()
    if suggestion.anonymous:
        data.pop("user", None)
    return data


def to_public_list(suggestions) -> list[dict]:
    return [to_public_view(s) for s in suggestions]


def to_tracking_view(suggestion) -> dict:
    return {
        "id": suggestion.id,
        "status": suggestion.status,
        "category": suggestion.category,
        "actionTaken": suggestion.action_taken,
        "createdAt": suggestion.created_at.isoformat() if suggestion.created_at else None,
        "updatedAt": suggestion.updated_at.isoformat() if suggestion.updated_at else None,
    }
