"""
Core middleware package.

This package provides the request pipeline components:
- Error handling with sensitive data sanitization
- Structured logging with PII masking
- In-memory or Redis rate limiting
- Authentication with hosted-auth JWTs
- Authorization with role permissions and tenant scoping
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
)

from core.middleware.rate_limiting import (
    InMemoryRateLimiter,
    RateLimitMiddleware,
    RateLimitRule,
    RateLimitStrategy,
    RateLimitWindow,
    SlidingWindowRateLimiter,
    check_rate_limit,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    AuthenticationError,
)

from core.middleware.authorization import (
    Permission,
    ROLE_PERMISSIONS,
    check_data_ownership,
    get_role_permissions,
    has_permission,
    require_admin,
    require_permission,
    tenant_filter,
    AuthorizationError,
    InsufficientPermissions,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "get_logger",
    # Rate limiting
    "InMemoryRateLimiter",
    "RateLimitMiddleware",
    "RateLimitRule",
    "RateLimitStrategy",
    "RateLimitWindow",
    "SlidingWindowRateLimiter",
    "check_rate_limit",
    # Authentication
    "AuthenticationMiddleware",
    "AuthenticationError",
    # Authorization
    "Permission",
    "ROLE_PERMISSIONS",
    "check_data_ownership",
    "get_role_permissions",
    "has_permission",
    "require_admin",
    "require_permission",
    "tenant_filter",
    "AuthorizationError",
    "InsufficientPermissions",
]
