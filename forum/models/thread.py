"""Read-only thread summaries shown on user profiles."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ThreadCategory(BaseModel):
    """The category fields a thread summary carries."""

    id: str
    name: str
    color: str


class RecentThread(BaseModel):
    """One of a user's latest threads.

    Attributes:
        id: Thread id
        title: Thread title
        category: Name and color of the thread's category, None if it is gone
        created_at: When the thread was started
    """

    id: str
    title: str
    category: Optional[ThreadCategory] = None
    created_at: datetime
