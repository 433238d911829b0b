"""Site access and role checks for yard operators."""

from yardflow.exceptions import InvalidOperationError
from yardflow.models.enums import UserRole
from yardflow.models.site import Site
from yardflow.models.user import User

SITE_WIDE_ROLES = {UserRole.SUPERUSER.value, UserRole.ADMIN.value}


def user_has_site_access(user: User, site_id: int) -> bool:
    """SUPERUSER and ADMIN reach every site; everyone else needs an explicit grant."""
    if user.role in SITE_WIDE_ROLES:
        return True
    return any(site.id == site_id for site in user.accessible_sites)


def require_site_access(user: User, site: Site) -> None:
    if not user_has_site_access(user, site.id):
        raise InvalidOperationError(
            f"User {user.username} (ID: {user.id}) does not have access to site "
            f"{site.name} (ID: {site.id})",
            user_id=user.id, site_id=site.id, role=user.role,
        )


def require_spotter(user: User) -> None:
    if user.role != UserRole.SPOTTER.value:
        raise InvalidOperationError(
            f"User {user.username} (ID: {user.id}) is not a spotter. Role: {user.role}",
            user_id=user.id, expected_role=UserRole.SPOTTER.value, actual_role=user.role,
        )
