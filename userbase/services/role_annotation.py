# File: userbase/services/role_annotation.py

"""
Role occurrence annotation for user listings.

Walking an ordered listing once, each user's primary role is marked as
the first occurrence of that role in the listing or as a recurrent one.
Users without a role get an absent marker. The set of seen role names
lives only for one call, so the markers depend on nothing but the list
being rendered.
"""

from typing import Iterable, List, Optional, Tuple

from userbase.models.role import label_for
from userbase.schemas.user import OccurrenceKind, RoleOccurrence


def primary_role(user) -> Optional[Tuple[str, str]]:
    """
    Return ``(name, label)`` of the user's first role assignment.

    Missing or nameless role data counts as no role.
    """
    roles = getattr(user, "roles", None) or []
    if not roles:
        return None

    role = roles[0]
    name = getattr(role, "name", None)
    if not isinstance(name, str) or not name.strip():
        return None
    label = getattr(role, "label", None) or label_for(name)
    return name, label


def annotate_roles(users: Iterable) -> List[Tuple[object, RoleOccurrence]]:
    seen = set()
    annotated = []

    for user in users:
        role = primary_role(user)
        if role is None:
            annotated.append((user, RoleOccurrence()))
            continue

        name, label = role
        if name in seen:
            kind = OccurrenceKind.RECURRENT
        else:
            kind = OccurrenceKind.FIRST
            seen.add(name)
        annotated.append((user, RoleOccurrence(kind=kind, label=label)))

    return annotated
