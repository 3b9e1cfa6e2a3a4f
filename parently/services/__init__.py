"""
Services module - Business logic layer.

- auth_service.py : Accounts, tokens and role checks
- ai_service.py   : Plans, chat and insights on top of the LLM client
"""
from parently.services.auth_service import AuthService, AuthenticatedUser
from parently.services.ai_service import AIService, tier_for_complexity

__all__ = [
    "AuthService",
    "AuthenticatedUser",
    "AIService",
    "tier_for_complexity",
]
