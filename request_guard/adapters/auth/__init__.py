"""Authentication collaborators consulted before a guarded operation runs.

Concrete authenticators live in their own modules (``api_key``) so this
package can be imported by ``request_guard.core.auth`` without a cycle.
"""

from request_guard.adapters.auth.base import AbstractAuthenticator, AuthVerification, Subject

__all__ = [
    "AbstractAuthenticator",
    "AuthVerification",
    "Subject",
]
