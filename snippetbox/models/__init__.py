# Models package init
"""
Snippetbox — ORM Models
=========================

What:  SQLAlchemy models for the three tables the application owns.

Model Inventory:
    - user.py:     users     (accounts; unique email)
    - snippet.py:  snippets  (shared text with an expiry)
    - session.py:  sessions  (server-side session store rows)

All models register on `snippetbox.database.Base.metadata`; importing this
package is enough for Alembic autogenerate and for create_all in tests.
"""

from snippetbox.models.session import SessionRecord
from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User

__all__ = ["SessionRecord", "Snippet", "User"]
