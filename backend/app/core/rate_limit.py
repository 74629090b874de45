# Rate limiting configuration for TaskCollab
# Uses slowapi, keyed on the client IP address

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

RATE_LIMITS = {
    # Credential checks and account creation
    "auth_operations": "20/minute",
    # Admin account management
    "admin_operations": "30/minute",
}

__all__ = ["limiter", "RATE_LIMITS"]
