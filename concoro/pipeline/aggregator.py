"""Grouping of saved items by owner."""

from typing import Dict, Iterable, List

from concoro.domain.models import SavedItem


def group_by_user(saved_items: Iterable[SavedItem], sort_users: bool = False) -> Dict[str, List[SavedItem]]:
    """
    Group saved items by ``user_id``.

    Users appear in order of their first saved item unless ``sort_users`` is
    set, in which case they are ordered by id. Items keep their input order.

    Examples:
        >>> items = [SavedItem(user_id="b", concorso_id="1"), SavedItem(user_id="a", concorso_id="2")]
        >>> list(group_by_user(items))
        ['b', 'a']
        >>> list(group_by_user(items, sort_users=True))
        ['a', 'b']
    """
    grouped: Dict[str, List[SavedItem]] = {}
    for item in saved_items:
        grouped.setdefault(item.user_id, []).append(item)

    if sort_users:
        return {user_id: grouped[user_id] for user_id in sorted(grouped)}
    return grouped
