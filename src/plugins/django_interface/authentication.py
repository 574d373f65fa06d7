from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

from members_core.core.domain.services.match_engine import is_email

ROLE_SOCIAL_WORKER = "social_worker"
ROLE_ADMIN = "admin"
KNOWN_ROLES = frozenset({ROLE_SOCIAL_WORKER, ROLE_ADMIN})


class StaffPrincipal:
    """
    Minimal DRF-compatible user built from the identity proxy headers:
    uid, e-mail, display name and role.
    """
    def __init__(self, uid: str = "", email: str = "", name: str = "", role: str = ROLE_SOCIAL_WORKER):
        self.uid = uid
        self.email = email.lower()
        self.name = name
        self.role = role
        self.is_authenticated = True

    @property
    def identity(self) -> str:
        return self.uid or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __str__(self):
        return f"<StaffPrincipal uid={self.uid} email={self.email} role={self.role}>"


class TrustedStaffHeaderAuthentication(BaseAuthentication):
    """
    Reads `X-Staff-Uid` / `X-Staff-Email` / `X-Staff-Name` / `X-Staff-Role`
    set by the upstream identity proxy and returns `(StaffPrincipal, None)`.
    Requests carrying none of them stay anonymous.
    """
    def authenticate(self, request):
        uid = request.headers.get("X-Staff-Uid", "").strip()
        email = request.headers.get("X-Staff-Email", "").strip()
        if not uid and not email:
            return None

        if email and not is_email(email):
            raise exceptions.AuthenticationFailed("Invalid X-Staff-Email header.")
        role = request.headers.get("X-Staff-Role", "").strip().lower() or ROLE_SOCIAL_WORKER
        if role not in KNOWN_ROLES:
            raise exceptions.AuthenticationFailed(f"Unknown staff role: {role}")

        principal = StaffPrincipal(
            uid=uid,
            email=email,
            name=request.headers.get("X-Staff-Name", "").strip(),
            role=role,
        )
        return (principal, None)

    def authenticate_header(self, request):
        return "X-Staff-Uid"
