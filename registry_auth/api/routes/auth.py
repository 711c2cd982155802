"""Authentication and package access endpoints."""

from fastapi import APIRouter, Depends

from registry_auth.api.dependencies import get_plugin
from registry_auth.api.models import (
    AuthenticateRequest,
    AuthenticateResponse,
    AuthorizeRequest,
    AuthorizeResponse,
    PackagePermissionsResponse,
    UserRequest,
)
from registry_auth.core.exceptions import ErrorResponse, InternalServerError, UnauthorizedError
from registry_auth.core.outcome import Authorized, Unauthorized
from registry_auth.infrastructure.metrics import access_checks_total
from registry_auth.plugin import PackageAuthPlugin

router = APIRouter(tags=["auth"])


@router.post(
    "/authenticate",
    response_model=AuthenticateResponse,
    summary="Authenticate a registry user",
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def authenticate(
    body: AuthenticateRequest,
    plugin: PackageAuthPlugin = Depends(get_plugin),
) -> AuthenticateResponse:
    outcome = await plugin.login(body.username, body.token)

    if isinstance(outcome, Authorized):
        return AuthenticateResponse(username=body.username, groups=outcome.groups)
    if isinstance(outcome, Unauthorized):
        raise UnauthorizedError("Invalid credentials")
    raise InternalServerError("Unable to authenticate user")


@router.post(
    "/authorize",
    response_model=AuthorizeResponse,
    summary="Check whether a user may access, publish or unpublish a package",
    responses={500: {"model": ErrorResponse}},
)
async def authorize(
    body: AuthorizeRequest,
    plugin: PackageAuthPlugin = Depends(get_plugin),
) -> AuthorizeResponse:
    allowed = await plugin.has_permission(
        body.to_remote_user(), body.package, body.action.required_permission
    )
    access_checks_total.labels(action=body.action.value, allowed=str(allowed).lower()).inc()

    return AuthorizeResponse(
        username=body.username,
        package=body.package,
        action=body.action,
        allowed=allowed,
    )


@router.post(
    "/permissions",
    response_model=PackagePermissionsResponse,
    summary="List the packages a user holds permissions on",
    responses={500: {"model": ErrorResponse}},
)
async def permissions(
    body: UserRequest,
    plugin: PackageAuthPlugin = Depends(get_plugin),
) -> PackagePermissionsResponse:
    packages = await plugin.user_permissions.package_permissions_for_user(body.to_remote_user())

    return PackagePermissionsResponse(
        username=body.username,
        packages={name: sorted(perms, key=lambda p: p.value) for name, perms in packages.items()},
    )
