# Routes package init
"""
Snippetbox — Routes Package
=============================

Route Inventory:
    - snippets.py:  GET /, GET /snippet/view/{id}, GET|POST /snippet/create
    - users.py:     GET|POST /user/signup, GET|POST /user/login, POST /user/logout
    - health.py:    GET /health

Each module exposes `router` (dynamic chain) and, where it has login-only
pages, `protected_router` (protected chain). Handlers stay thin: decode,
check, call a service, render or redirect.
"""
