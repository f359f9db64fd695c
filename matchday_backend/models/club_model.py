# club_model.py
# Defines the Club model. Clubs are seeded; entry forms live outside this service.

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class Club(SQLModel, table=True):
    """Database model representing a club taking part in the league."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    logo: Optional[str] = Field(default=None)

    # Only active clubs are drawn into generated fixtures
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
