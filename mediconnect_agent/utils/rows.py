"""
Helpers for joined datastore rows.
"""

from typing import Any, Optional


def first_related(value: Any) -> Optional[Any]:
    """
    Return a related record whether the join produced an object or a collection.

    Joined queries may yield the related entity as a single mapping or as a
    one-element list depending on the join path. Empty collections yield None.
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value
