# Overview: Service-layer operations for accounts; sign-up, sign-in, cashiers and profile.

"""
Authentication & Account Service

Passwords are hashed with bcrypt (cost factor 12). Email addresses are
unique across the whole system and compared case-insensitively.

MULTI-TENANT: owners and cashiers belong to exactly one tenant. Sign-in is
refused for users of an inactive tenant, and no session is created for them.
Super admins have no tenant.
"""

import re

import bcrypt

from ..errors import AuthenticationFailure, ConflictError, NotFound, TenantInactive, ValidationError
from ..extensions import carts, db
from ..models import ROLES, Sale, Tenant, User
from ..time_utils import utcnow
from . import session_service

MIN_PASSWORD_LENGTH = 6

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password minimal {MIN_PASSWORD_LENGTH} karakter")


def hash_password(password: str) -> str:
    """Validate and hash ``password`` with bcrypt, cost factor 12."""
    validate_password(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def _normalize_email(email) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("Email tidak valid")
    return email.strip().lower()


def _require_name(full_name) -> str:
    if not isinstance(full_name, str) or not full_name.strip():
        raise ValidationError("Nama lengkap wajib diisi")
    return full_name.strip()


def _ensure_email_available(email: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("Email sudah terdaftar", details={"email": email})


def sign_up(
    email: str,
    password: str,
    full_name: str,
    tenant_id: int | None = None,
    role: str = "owner",
    *,
    phone: str | None = None,
    address: str | None = None,
) -> User:
    """
    Register a new account.

    Owners may sign up before a tenant is assigned to them; they cannot use
    the application until a super admin links them to an active tenant.
    """
    if role not in ROLES:
        raise ValidationError("Peran tidak valid", details={"role": role, "allowed": list(ROLES)})

    email = _normalize_email(email)
    full_name = _require_name(full_name)

    if role == "super_admin":
        tenant_id = None
    elif tenant_id is not None:
        tenant = db.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFound("Tenant tidak ditemukan", details={"tenant_id": tenant_id})
        if not tenant.is_active:
            raise TenantInactive("Tenant tidak aktif", details={"tenant_id": tenant_id})
    elif role == "kasir":
        raise ValidationError("Kasir harus terhubung ke tenant")

    _ensure_email_available(email)

    user = User(
        tenant_id=tenant_id,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        role=role,
        phone=phone,
        address=address,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def sign_in(email: str, password: str) -> tuple[User, str]:
    """
    Check credentials and open a session.

    Returns (user, plaintext_token). Raises AuthenticationFailure for unknown
    email, wrong password or a disabled account, and TenantInactive when the
    user's tenant is deactivated.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        raise AuthenticationFailure("Email atau password salah")

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthenticationFailure("Email atau password salah")

    if user.role != "super_admin":
        tenant = user.tenant
        if tenant is None or not tenant.is_active:
            raise TenantInactive(
                "Akun toko Anda tidak aktif. Hubungi administrator.",
                details={"tenant_id": user.tenant_id},
            )

    user.last_login_at = utcnow()
    _, token = session_service.create_session(user.id, commit=False)
    db.session.commit()
    return user, token


def create_cashier(
    owner_principal,
    email: str,
    password: str,
    full_name: str,
    phone: str | None = None,
    address: str | None = None,
) -> User:
    """Create a kasir account in the owner's tenant."""
    if owner_principal.tenant_id is None:
        raise ValidationError("Owner belum terhubung ke tenant")
    return sign_up(
        email,
        password,
        full_name,
        tenant_id=owner_principal.tenant_id,
        role="kasir",
        phone=phone,
        address=address,
    )


def list_cashiers(tenant_id: int) -> list[User]:
    return (
        db.session.query(User)
        .filter(User.tenant_id == tenant_id, User.role == "kasir")
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def delete_cashier(tenant_id: int, user_id: int) -> None:
    """
    Remove a kasir of ``tenant_id``. Their sessions are deleted with them;
    their past sales stay, without a cashier.
    """
    user = (
        db.session.query(User)
        .filter(User.id == user_id, User.tenant_id == tenant_id, User.role == "kasir")
        .first()
    )
    if user is None:
        raise NotFound("Kasir tidak ditemukan", details={"user_id": user_id})

    session_ids = [s.id for s in user.sessions]
    db.session.query(Sale).filter(Sale.user_id == user.id).update(
        {Sale.user_id: None}, synchronize_session=False
    )
    for session in list(user.sessions):
        db.session.delete(session)
    db.session.delete(user)
    db.session.commit()

    for session_id in session_ids:
        carts.discard(session_id)


def update_profile(user_id: int, full_name: str | None = None, email: str | None = None,
                   phone: str | None = None, address: str | None = None) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User tidak ditemukan", details={"user_id": user_id})

    if full_name is not None:
        user.full_name = _require_name(full_name)
    if email is not None:
        normalized = _normalize_email(email)
        _ensure_email_available(normalized, exclude_user_id=user.id)
        user.email = normalized
    if phone is not None:
        user.phone = phone.strip() or None
    if address is not None:
        user.address = address.strip() or None

    db.session.commit()
    return user
