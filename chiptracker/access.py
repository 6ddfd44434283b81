"""Role definitions and edit capability."""
from enum import Enum

from chiptracker.ledger.ledger import Ledger
from chiptracker.ledger.models import SessionState


class Role(str, Enum):
    """How the current user relates to a session."""
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


def can_edit(role: Role) -> bool:
    """Whether a role may record transactions or rename participants."""
    return role in (Role.OWNER, Role.EDITOR)


def ledger_for(state: SessionState, role: Role) -> Ledger:
    """Open a ledger handle with the capability the role allows.
    
    Args:
        state: Session to open.
        role: Caller's role for this session.
        
    Returns:
        Ledger that rejects mutations for read-only roles.
    """
    return Ledger(state, can_edit=can_edit(role))
