# businesses/authz.py
"""
Actor context passed to ledger commands.

Authentication and identity live outside the ledger; callers resolve
the acting user themselves and hand the engine an ActorContext. The
engine only records who did what, it does not check permissions.
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    Attributes:
        user_id: Identifier of the acting user
        display_name: Name recorded on audit rows
    """
    user_id: UUID
    display_name: str = ""

    @property
    def audit_name(self) -> str:
        """Display name truncated to the audit column width."""
        return (self.display_name or str(self.user_id))[:256]
