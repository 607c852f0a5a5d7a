"""
Per-request user identity and audit stamping.

The signed-in user is passed explicitly to every write; nothing here is
stored globally.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

ANONYMOUS = 'anonymous'


@dataclass(frozen=True)
class UserContext:
    """Authenticated caller."""

    uid: Optional[str] = None
    email: Optional[str] = None

    @property
    def username(self) -> str:
        """Local part of the email, or 'anonymous'."""
        if self.email and '@' in self.email:
            local = self.email.split('@', 1)[0]
            if local:
                return local
        return ANONYMOUS


def stamp_audit_fields(
    payload: Dict[str, Any],
    user: UserContext,
    existing: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Return a copy of ``payload`` with the audit fields set.

    On create ``createdBy`` is the current user. On edit it is carried over
    from ``existing``. ``updatedBy`` and ``user_id`` always reflect the
    current user.
    """
    stamped = dict(payload)
    if existing is not None:
        stamped['createdBy'] = existing.get('createdBy')
    else:
        stamped['createdBy'] = user.username
    stamped['updatedBy'] = user.username
    stamped['user_id'] = user.uid
    return stamped
