"""
Security utilities for the ATS API.

Provides token verification for the hosted auth service, password and file
validation, input sanitization, CSRF helpers and audit logging.
"""

import functools
import hashlib
import hmac
import html
import json
import logging
import re
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

import jwt
from fastapi import Request, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from database.models.audit import AuditLog

logger = logging.getLogger("security.audit")


# ==================== Tokens ===================== #

@dataclass
class TokenPayload:
    """Claims of a hosted-auth access token that the API relies on."""

    sub: str
    email: Optional[str] = None
    role: Optional[str] = None  # user_metadata.role, used when provisioning
    exp: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.sub)


def decode_access_token(
    token: str,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
    audience: Optional[str] = None,
) -> TokenPayload:
    """
    Verify a hosted-auth JWT and return its claims.

    Raises:
        jwt.ExpiredSignatureError: token expired
        jwt.InvalidTokenError: bad signature, audience or missing subject
    """
    claims = jwt.decode(
        token,
        secret or settings.supabase_jwt_secret,
        algorithms=[algorithm or settings.jwt_algorithm],
        audience=audience or settings.jwt_audience,
        options={"require": ["sub", "exp"]},
    )
    try:
        uuid.UUID(str(claims["sub"]))
    except ValueError:
        raise jwt.InvalidTokenError("Subject is not a user id")

    metadata = claims.get("user_metadata") or {}
    return TokenPayload(
        sub=str(claims["sub"]),
        email=claims.get("email"),
        role=metadata.get("role"),
        exp=claims.get("exp"),
        raw=claims,
    )


def create_access_token(
    user_id: uuid.UUID | str,
    email: str,
    role: Optional[str] = None,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """
    Mint a token shaped like the hosted auth service's.

    Only used by scripts and tests; production tokens come from the auth
    service itself.
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
        "user_metadata": {"role": role} if role else {},
    }
    return jwt.encode(claims, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


# ==================== Passwords ===================== #

@dataclass
class PasswordStrengthResult:
    score: int  # 0-5
    feedback: List[str]
    is_valid: bool


def validate_password_strength(password: str) -> PasswordStrengthResult:
    """
    Score a password one point per satisfied rule.

    Rules: at least 8 chars, at least 12 chars, mixed case, a digit, a
    non-alphanumeric character. A score of 3 or more is acceptable.
    """
    feedback: List[str] = []
    score = 0

    if len(password) >= 8:
        score += 1
    else:
        feedback.append("Password should be at least 8 characters")

    if len(password) >= 12:
        score += 1

    if re.search(r"[a-z]", password) and re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Password should contain both uppercase and lowercase letters")

    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Password should contain at least one number")

    if re.search(r"[^a-zA-Z0-9]", password):
        score += 1
    else:
        feedback.append("Password should contain at least one special character")

    return PasswordStrengthResult(score=score, feedback=feedback, is_valid=score >= 3)


# ==================== Files ===================== #

@dataclass
class FileValidationResult:
    valid: bool
    error: Optional[str] = None


def validate_file(
    size: int,
    content_type: Optional[str],
    max_size_mb: Optional[int] = None,
    allowed_types: Optional[List[str]] = None,
) -> FileValidationResult:
    """Check an upload's size and MIME type against the configured limits."""
    max_size_mb = max_size_mb if max_size_mb is not None else settings.max_file_size_mb
    allowed_types = allowed_types if allowed_types is not None else settings.allowed_file_types

    if size > max_size_mb * 1024 * 1024:
        return FileValidationResult(
            valid=False,
            error=f"File size exceeds maximum allowed size of {max_size_mb}MB",
        )

    if content_type not in allowed_types:
        return FileValidationResult(
            valid=False,
            error=(
                f'File type "{content_type}" is not allowed. '
                f"Allowed types: {', '.join(allowed_types)}"
            ),
        )

    return FileValidationResult(valid=True)


def validate_file_extension(
    filename: str,
    allowed_extensions: Optional[List[str]] = None,
) -> FileValidationResult:
    allowed_extensions = (
        allowed_extensions if allowed_extensions is not None else settings.allowed_file_extensions
    )
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    if not extension or extension not in allowed_extensions:
        return FileValidationResult(
            valid=False,
            error=(
                f'File extension ".{extension}" is not allowed. '
                f"Allowed: {', '.join(allowed_extensions)}"
            ),
        )

    return FileValidationResult(valid=True)


# ==================== Sanitization ===================== #

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_QUOTED_HANDLER = re.compile(r"""on\w+\s*=\s*["'][^"']*["']""", re.IGNORECASE)
_BARE_HANDLER = re.compile(r"on\w+\s*=\s*[^\s>]+", re.IGNORECASE)


def sanitize_input(value: str) -> str:
    """Escape characters that could open markup in plain-text fields."""
    return html.escape(value, quote=True).replace("/", "&#x2F;")


def sanitize_html(value: str) -> str:
    """Strip script tags and inline event handlers from rich text (notes, descriptions)."""
    value = _SCRIPT_TAG.sub("", value)
    value = _QUOTED_HANDLER.sub("", value)
    return _BARE_HANDLER.sub("", value)


# ==================== CSRF ===================== #

def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def validate_csrf_token(token: Optional[str], stored_token: Optional[str]) -> bool:
    if not token or not stored_token or len(token) != len(stored_token):
        return False
    return hmac.compare_digest(token, stored_token)


# ==================== Audit ===================== #

class AuditAction(str, Enum):
    """Audit log action types."""
    VIEW = "VIEW"
    LIST = "LIST"
    SEARCH = "SEARCH"

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    MOVE_STAGE = "MOVE_STAGE"
    SCHEDULE = "SCHEDULE"
    UPLOAD = "UPLOAD"
    ROLE_CHANGE = "ROLE_CHANGE"


class ResourceType(str, Enum):
    """Resource types for audit logging."""
    CANDIDATE = "CANDIDATE"
    JOB = "JOB"
    INTERVIEW = "INTERVIEW"
    NOTIFICATION = "NOTIFICATION"
    RESUME = "RESUME"
    USER = "USER"


# PII fields that should be masked in logs
PII_FIELDS: Set[str] = {
    "email", "phone", "full_name", "name",
    "linkedin_url", "portfolio_url", "resume_url",
    "location", "notes", "password",
}


def mask_pii(data: Any, depth: int = 0) -> Any:
    """
    Recursively mask PII fields in data structures.

    Args:
        data: Data to mask (dict, list, or primitive)
        depth: Current recursion depth (max 10)

    Returns:
        Data with PII fields masked
    """
    if depth > 10:
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in PII_FIELDS:
                if isinstance(value, str) and len(value) > 0:
                    # Partial masking: show first char and length indicator
                    masked[key] = f"{value[0]}***[{len(value)}]"
                else:
                    masked[key] = "[MASKED]"
            else:
                masked[key] = mask_pii(value, depth + 1)
        return masked
    elif isinstance(data, list):
        return [mask_pii(item, depth + 1) for item in data[:5]]  # Limit list items
    else:
        return data


def generate_request_id(request: Request) -> str:
    """Generate a unique request ID for correlation."""
    existing = getattr(request.state, "request_id", None)
    if existing:
        return existing

    timestamp = datetime.now(timezone.utc).isoformat()
    client = request.client.host if request.client else "unknown"
    raw = f"{timestamp}-{request.method}-{request.url.path}-{client}"
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


async def log_audit_event(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    contains_pii: bool = False,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
):
    """
    Log an audit event as one structured JSON line.
    """
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": "AUDIT",
        "action": action.value,
        "resource_type": resource_type.value,
        "resource_id": str(resource_id) if resource_id else None,
        "user_id": str(user_id) if user_id else None,
        "request_id": request_id,
        "contains_pii": contains_pii,
        "ip_address": ip_address,
        "user_agent": user_agent[:200] if user_agent else None,
        "details": mask_pii(details) if details and contains_pii else details,
    }

    logger.info(json.dumps(event, default=str))


@dataclass
class AuditContext:
    """Client details recorded with an audit entry."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def create_audit_log(
    db: AsyncSession,
    user_id: Optional[uuid.UUID],
    action: AuditAction,
    resource: ResourceType,
    resource_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    context: Optional[AuditContext] = None,
) -> AuditLog:
    """
    Stage an audit_logs row on the session.

    The row is committed together with the change it describes.
    """
    context = context or AuditContext()
    entry = AuditLog(
        user_id=user_id,
        action=action.value,
        resource=resource.value,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=context.ip_address,
        user_agent=context.user_agent[:255] if context.user_agent else None,
    )
    db.add(entry)
    return entry


def audit_log(
    action: AuditAction,
    resource_type: ResourceType,
    resource_id_param: Optional[str] = None,
    contains_pii: bool = False,
):
    """
    Decorator for audit logging API endpoints.

    Usage:
        @router.get("/{candidate_id}")
        @audit_log(AuditAction.VIEW, ResourceType.CANDIDATE, "candidate_id", contains_pii=True)
        async def get_candidate(candidate_id: UUID, request: Request, current_user: Profile):
            ...
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            current_user = kwargs.get("current_user")

            resource_id = kwargs.get(resource_id_param) if resource_id_param else None
            request_id = generate_request_id(request) if request else None
            user_id = current_user.id if current_user else None

            ip_address = None
            user_agent = None
            if request:
                ip_address = request.client.host if request.client else None
                user_agent = request.headers.get("user-agent")

            event = functools.partial(
                log_audit_event,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                user_id=user_id,
                request_id=request_id,
                contains_pii=contains_pii,
                ip_address=ip_address,
                user_agent=user_agent,
            )

            try:
                result = await func(*args, **kwargs)
                await event(details={"status": "success"})
                return result
            except HTTPException as e:
                await event(details={"status": "failed", "error": str(e.detail)})
                raise
            except Exception as e:
                await event(details={"status": "error", "error": str(e)[:200]})
                raise

        return wrapper
    return decorator
