# Services package init
"""
Snippetbox — Services Layer
=============================

What:  Persistence-backed business operations, called by route handlers.
How:   Services receive the request's AsyncSession; committing is left to
       get_db_session. Failures surface as SnippetboxError subclasses.

Service Inventory:
    - SnippetService: insert / get / latest, hiding expired snippets
    - UserService:    signup (bcrypt hashing), credential checks, existence
"""

from snippetbox.services.snippet_service import SnippetService, snippet_service
from snippetbox.services.user_service import UserService

__all__ = ["SnippetService", "UserService", "snippet_service"]
