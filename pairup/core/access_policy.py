# pairup/core/access_policy.py
"""
Route access rules for page navigations.

Every page path is resolved once to a RouteCategory and the rule table in
`evaluate_access` decides whether the navigation is allowed or redirected.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable

AGE_GATE_PATH = "/age-gate"
BLOCKED_PATH = "/blocked"
LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
CALLBACK_PATH = "/callback"
SETUP_PROFILE_PATH = "/setup-profile"
FEED_PATH = "/feed"


class RouteCategory(str, Enum):
    PUBLIC = "public"
    AUTH = "auth"
    ONBOARDING = "onboarding"
    PROTECTED = "protected"
    OTHER = "other"


ROUTE_TABLE: dict[RouteCategory, tuple[str, ...]] = {
    RouteCategory.PUBLIC: (AGE_GATE_PATH, BLOCKED_PATH),
    RouteCategory.AUTH: (LOGIN_PATH, SIGNUP_PATH, CALLBACK_PATH),
    RouteCategory.ONBOARDING: (SETUP_PROFILE_PATH,),
    RouteCategory.PROTECTED: (FEED_PATH,),
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: str | None = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def redirect(cls, target: str) -> "AccessDecision":
        return cls(allowed=False, redirect_to=target)


def _matches(path: str, route: str) -> bool:
    return path == route or path.startswith(route + "/")


def resolve_route(path: str) -> RouteCategory:
    """
    Map a request path to its route category.

    Matching is per path segment: "/feed/123" is PROTECTED,
    "/feedback" is OTHER.
    """
    normalized = "/" + path.strip("/") if path else "/"
    for category, routes in ROUTE_TABLE.items():
        if any(_matches(normalized, route) for route in routes):
            return category
    return RouteCategory.OTHER


def evaluate_access(
    category: RouteCategory,
    age_verified: bool,
    has_session: bool,
    profile_exists: Callable[[], bool],
) -> AccessDecision:
    """
    Apply the access rules in precedence order.

    `profile_exists` is only called for PROTECTED routes with a session.
    It must return False only when the lookup found zero rows; any other
    lookup failure is raised and propagates out of this function.
    """
    if category is RouteCategory.PUBLIC:
        return AccessDecision.allow()

    if not age_verified:
        return AccessDecision.redirect(AGE_GATE_PATH)

    if category is RouteCategory.AUTH:
        if has_session:
            return AccessDecision.redirect(FEED_PATH)
        return AccessDecision.allow()

    if category is RouteCategory.ONBOARDING:
        if not has_session:
            return AccessDecision.redirect(LOGIN_PATH)
        return AccessDecision.allow()

    if category is RouteCategory.PROTECTED:
        if not has_session:
            return AccessDecision.redirect(LOGIN_PATH)
        if not profile_exists():
            return AccessDecision.redirect(SETUP_PROFILE_PATH)
        return AccessDecision.allow()

    return AccessDecision.allow()
