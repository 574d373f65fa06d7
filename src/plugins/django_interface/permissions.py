from rest_framework.permissions import BasePermission

from plugins.django_interface.authentication import ROLE_ADMIN, StaffPrincipal


def is_staff_principal(user) -> bool:
    return isinstance(user, StaffPrincipal) and bool(user.identity)


class IsStaffMember(BasePermission):
    """Any caller identified by the proxy headers (social worker or admin)."""

    def has_permission(self, request, view):
        return is_staff_principal(request.user)


class IsAdminUser(BasePermission):
    """Allows access only to callers with role 'admin'."""

    def has_permission(self, request, view):
        return is_staff_principal(request.user) and request.user.role == ROLE_ADMIN


def owns_or_administers(user, staff_identity: str) -> bool:
    if not is_staff_principal(user):
        return False
    return user.role == ROLE_ADMIN or staff_identity in {user.uid, user.email}
