"""Named frontend routes used in emails and redirects."""

from urllib.parse import urlencode

from mediature.core.config import settings

ROUTES: dict[str, str] = {
    "home": "/",
    "signIn": "/auth/sign-in",
    "signUp": "/auth/sign-up",
    "resetPassword": "/auth/password/reset",
    "dashboard": "/dashboard",
    "authority": "/dashboard/authority/{authorityId}",
    "authorityAgents": "/dashboard/authority/{authorityId}/agents",
    "case": "/dashboard/authority/{authorityId}/case/{caseId}",
    "publicAuthority": "/{authoritySlug}",
}


def get_link(name: str, params: dict[str, str] | None = None, *, absolute: bool = False) -> str:
    """
    Build a frontend link from a named route.

    Params matching a path placeholder fill it; the others go to the query string.
    Raises KeyError for an unknown route or a missing placeholder.
    """
    template = ROUTES[name]
    params = {key: str(value) for key, value in (params or {}).items()}

    path_params = {key: value for key, value in params.items() if "{" + key + "}" in template}
    query_params = {key: value for key, value in params.items() if key not in path_params}

    path = template.format(**path_params)
    if query_params:
        path = f"{path}?{urlencode(query_params)}"

    if absolute:
        return f"{settings.APP_BASE_URL.rstrip('/')}{path}"
    return path
