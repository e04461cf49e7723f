"""
User Model.

The authenticated actor as seen by the service layer.  Authentication
itself happens upstream; services only need identity and role.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Represents a signed-in user.

    ``role`` is kept as free text: stored roles include several spellings
    of the same role (see :class:`~aleya.models.enums.SuperAdminRole`).
    """

    id: str  # Supabase UUID
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = ""
    store_id: Optional[str] = None

    model_config = {"from_attributes": True}

    @property
    def display_name(self) -> str:
        """Name shown to other users: name, then email, then ``"Usuario"``."""
        return self.name or self.email or "Usuario"
