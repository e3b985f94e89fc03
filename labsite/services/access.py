"""Route guard table: which roles may reach which URL prefixes."""
from collections import namedtuple

from labsite.models.user import ROLE_ADMIN, ROLE_DIRECTOR, ROLE_MEMBER

ALLOW = 'allow'
LOGIN = 'login'
FORBIDDEN = 'forbidden'

# An empty role tuple means any authenticated user.
ANY_AUTHENTICATED = ()

Guard = namedtuple('Guard', ['prefix', 'roles'])

ROUTE_GUARDS = [
    Guard('/dashboard', (ROLE_ADMIN,)),
    Guard('/admin', (ROLE_ADMIN,)),
    Guard('/director_dashboard', (ROLE_DIRECTOR,)),
    Guard('/api/director', (ROLE_DIRECTOR,)),
    Guard('/member_dashboard', (ROLE_MEMBER,)),
    Guard('/api/member', (ROLE_MEMBER,)),
    Guard('/profile', ANY_AUTHENTICATED),
    Guard('/api/activity', ANY_AUTHENTICATED),
]


def _matches(path, prefix):
    return path == prefix or path.startswith(prefix.rstrip('/') + '/')


def find_guard(path, guards=None):
    """Longest matching prefix wins; None when the path is public."""
    candidates = [guard for guard in (guards or ROUTE_GUARDS) if _matches(path, guard.prefix)]
    if not candidates:
        return None
    return max(candidates, key=lambda guard: len(guard.prefix))


def authorize(path, role, guards=None):
    guard = find_guard(path, guards)
    if guard is None:
        return ALLOW
    if role is None:
        return LOGIN
    if guard.roles and role not in guard.roles:
        return FORBIDDEN
    return ALLOW


def landing_page(role):
    return {
        ROLE_ADMIN: '/dashboard',
        ROLE_DIRECTOR: '/director_dashboard',
        ROLE_MEMBER: '/member_dashboard',
    }.get(role, '/')
