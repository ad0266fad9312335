"""Family login: turning a family name into the partition key."""

from __future__ import annotations

import re
from typing import Optional

from .ids import IdProvider, uuid_ids
from .models import PRIMARY, USER_ROLES, FamilyContext, User


def family_id_for(family_name: str) -> str:
    """Normalize a family name: trimmed, lower-case, whitespace runs as ``-``."""
    return re.sub(r"\s+", "-", family_name.strip().lower())


def login(
    user_name: str,
    family_name: str,
    role: str = PRIMARY,
    id_provider: IdProvider = uuid_ids,
) -> Optional[User]:
    """Build the session user, or ``None`` when a required field is blank.

    Two people typing the same family name share the same ledger.
    """
    if not (user_name or '').strip() or not (family_name or '').strip():
        return None
    if role not in USER_ROLES:
        raise ValueError(f"Unknown role '{role}'.")
    return User(
        id=id_provider(),
        name=user_name.strip(),
        family_id=family_id_for(family_name),
        family_name=family_name.strip(),
        role=role,
    )


def context_for(user: User) -> FamilyContext:
    return FamilyContext(family_id=user.family_id, user_id=user.id, user_name=user.name)
