"""
Session management - Holds the backend bearer token and open editor drafts.
"""
from pydantic import BaseModel, Field
from typing import Optional, Union
from datetime import datetime
import uuid

from .package_tree import PackageCategory


class AdminProfile(BaseModel):
    """Admin user returned by the login endpoint."""
    id: Optional[Union[int, str]] = None
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    model_config = {"extra": "allow"}


class DestinationDraft(BaseModel):
    """Package tree being edited for a destination before it is submitted."""
    draft_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    destination_id: Optional[str] = Field(
        None,
        description="Backend id when editing an existing destination"
    )
    tree: list[PackageCategory] = Field(default_factory=list)


class AdminSession(BaseModel):
    """Logged in admin session."""
    session_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique session identifier"
    )
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    token: str = Field(..., description="Backend bearer token")
    admin: AdminProfile = Field(default_factory=AdminProfile)

    drafts: dict[str, DestinationDraft] = Field(
        default_factory=dict,
        description="Open destination package-tree drafts"
    )

    @property
    def role(self) -> Optional[str]:
        return self.admin.role

    def open_draft(
        self,
        tree: Optional[list[PackageCategory]] = None,
        destination_id: Optional[str] = None
    ) -> DestinationDraft:
        """Start a new package-tree draft."""
        draft = DestinationDraft(destination_id=destination_id, tree=tree or [])
        self.drafts[draft.draft_id] = draft
        self.updated_at = datetime.now()
        return draft

    def get_draft(self, draft_id: str) -> Optional[DestinationDraft]:
        return self.drafts.get(draft_id)

    def set_draft_tree(self, draft_id: str, tree: list[PackageCategory]):
        """Replace the tree of an open draft."""
        self.drafts[draft_id].tree = tree
        self.updated_at = datetime.now()

    def close_draft(self, draft_id: str):
        self.drafts.pop(draft_id, None)
        self.updated_at = datetime.now()


# In-memory session storage
class SessionStore:
    """Simple in-memory session store."""

    def __init__(self):
        self._sessions: dict[str, AdminSession] = {}

    def create(self, token: str, admin: Optional[dict] = None) -> AdminSession:
        """Create a new session for a backend token."""
        session = AdminSession(token=token, admin=AdminProfile(**(admin or {})))
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[AdminSession]:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def update(self, session: AdminSession):
        """Update a session."""
        self._sessions[session.session_id] = session

    def delete(self, session_id: str):
        """Delete a session."""
        self._sessions.pop(session_id, None)

    def clear(self):
        """Drop every session."""
        self._sessions.clear()


# Global session store
session_store = SessionStore()
