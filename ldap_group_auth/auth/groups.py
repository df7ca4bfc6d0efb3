"""Group allow-list matching."""

from collections.abc import Sequence


def user_in_group(user_groups: Sequence[str], allowed_groups: Sequence[str]) -> bool:
    """Return True as soon as a group of the user is also in the allow-list.

    Exact string comparison; an empty list on either side never matches.
    """
    for group in user_groups:
        for allowed in allowed_groups:
            if group == allowed:
                return True
    return False
