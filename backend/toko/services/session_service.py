# Overview: Service-layer operations for session tokens; encapsulates business logic and database work.

"""
Session Token Management Service

Bearer sessions with absolute and idle timeouts, revocable at any time.
Tokens are cryptographically secure, hashed in database, and time-limited.

Sessions only carry the user identity. Role, tenant and tenant status are
resolved on every protected request (see principal_service) so that a
deactivated tenant is locked out on its next request, not at next login.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout, tenant deactivation or user removal
"""

import hashlib
import secrets
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy), sent to the client only."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user_id: int, *, commit: bool = True) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        is_revoked=False,
    )

    db.session.add(session)
    if commit:
        db.session.commit()
    else:
        db.session.flush()

    return session, plaintext_token


def validate_session(token: str) -> SessionToken | None:
    """
    Return the live SessionToken for ``token`` or None.

    Returns None if the token is unknown, revoked, expired or idle, or if
    the user account is deactivated. Idle and deactivated sessions are
    revoked on the way out. Updates last_used_at on success.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return session


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def revoke_session(token: str, reason: str = "User logout") -> SessionToken | None:
    """
    Revoke session token.

    Returns the revoked session, or None if no live session matched.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    _revoke(session, reason)
    db.session.commit()
    return session


def revoke_user_sessions(user_id: int, reason: str, *, commit: bool = True) -> list[int]:
    """Revoke all live sessions of a user. Returns the revoked session ids."""
    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False
    ).all()

    for session in sessions:
        _revoke(session, reason)

    if commit:
        db.session.commit()
    return [s.id for s in sessions]


def revoke_tenant_sessions(tenant_id: int, reason: str, *, commit: bool = True) -> list[int]:
    """Revoke every live session of every user in a tenant."""
    user_ids = [row.id for row in db.session.query(User.id).filter_by(tenant_id=tenant_id).all()]
    revoked: list[int] = []
    for user_id in user_ids:
        revoked.extend(revoke_user_sessions(user_id, reason, commit=False))

    if commit:
        db.session.commit()
    return revoked


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """
    Delete expired and revoked sessions older than the retention window.

    Returns count of sessions deleted.
    """
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < cutoff
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
