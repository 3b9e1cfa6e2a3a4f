"""
API Routes module - Endpoint definitions.

Each file in this module defines routes for a specific domain:
- auth.py   : Registration, login and tokens
- parent.py : Check-ins, plans, chat, progress, insights, goals
- kids.py   : Child chat and tasks, parent views of a child
- health.py : Liveness and API discovery
"""
from parently.api.routes.health import router as health_router
from parently.api.routes.auth import router as auth_router
from parently.api.routes.parent import router as parent_router
from parently.api.routes.kids import router as kids_router

__all__ = [
    "health_router",
    "auth_router",
    "parent_router",
    "kids_router",
]
