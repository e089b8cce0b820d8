"""Permission checks for reading audits."""

from audit_trail.core.permissions.gate import AccessGate, AccessPolicy, Identity, UserProvider


__all__ = [
    "AccessGate",
    "AccessPolicy",
    "Identity",
    "UserProvider",
]
