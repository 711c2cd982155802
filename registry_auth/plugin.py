"""Registry authentication plugin.

Ties the identity, catalog and permission services together behind the
callback interface a package registry calls into: ``authenticate``,
``allow_access``, ``allow_publish``, ``allow_unpublish`` and ``adduser``.
Every callback is invoked exactly once per call.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Union

import httpx

from registry_auth.application.services.catalog_service import CatalogService
from registry_auth.application.services.identity_service import ClientFactory, IdentityService
from registry_auth.application.services.repository_permission_service import (
    RepositoryPermissionService,
)
from registry_auth.application.services.user_permission_service import UserPermissionService
from registry_auth.core.config import PluginConfig
from registry_auth.core.outcome import (
    Authorized,
    InternalError,
    LoginOutcome,
    Unauthorized,
    classify_login_error,
)
from registry_auth.core.permissions.models import PackagePermission, RemoteUser
from registry_auth.infrastructure.cache import ResultCache
from registry_auth.infrastructure.github.client import GraphQLClient
from registry_auth.infrastructure.logging import get_logger
from registry_auth.infrastructure.metrics import access_checks_total, auth_attempts_total

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthErrorInfo:
    """Error handed to the authentication callback; carries no permission details."""

    message: str
    status: int
    name: str
    expose: bool = True

    @property
    def code(self) -> int:
        return self.status

    @property
    def status_code(self) -> int:
        return self.status

    @classmethod
    def from_outcome(cls, outcome: Union[Unauthorized, InternalError]) -> "AuthErrorInfo":
        return cls(message=outcome.message, status=outcome.status, name=outcome.name)


AuthCallback = Callable[[Optional[AuthErrorInfo], Union[List[str], bool]], Any]
AccessCallback = Callable[[Optional[Exception], bool], Any]


class PackageAuthPlugin:
    """Authenticates registry users against an organization and checks package access."""

    def __init__(
        self,
        config: Union[PluginConfig, Mapping[str, Any]],
        *,
        cache: Optional[ResultCache] = None,
        client: Optional[GraphQLClient] = None,
        client_factory: Optional[ClientFactory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not isinstance(config, PluginConfig):
            config = PluginConfig.from_mapping(config)

        self.config = config
        self.organization = config.organization
        self._transport = transport

        self.cache = cache or ResultCache(ttl=config.cache_ttl)
        self.client = client or self._create_client(config.token)
        self.client_factory = client_factory or self._create_client

        self.catalog = CatalogService(
            self.client,
            self.cache,
            config.organization,
            manifest_path=config.manifest_path,
            include_repositories=config.include_repositories,
            exclude_repositories=config.exclude_repositories,
            repository_pattern=config.repository_pattern,
        )
        self.repositories = RepositoryPermissionService(
            self.client, self.cache, config.organization
        )
        self.user_permissions = UserPermissionService(
            self.cache, self.catalog, self.repositories
        )
        self.identity = IdentityService(
            self.client, self.cache, config.organization, self.client_factory
        )

        logger.info(
            "plugin_initialized",
            organization=config.organization,
            repository_pattern=config.repository_pattern.pattern if config.repository_pattern else None,
            include_repositories=config.include_repositories,
            exclude_repositories=config.exclude_repositories,
        )

    def _create_client(self, token: str) -> GraphQLClient:
        return GraphQLClient(
            token,
            api_url=self.config.github_api_url,
            timeout=self.config.request_timeout,
            page_size=self.config.page_size,
            transport=self._transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def login(self, username: str, token: str) -> LoginOutcome:
        """Authenticate ``username`` and return the groups they belong to."""
        try:
            teams = await self.identity.authenticate(username, token)
        except Exception as e:
            outcome = classify_login_error(e)
            if isinstance(outcome, Unauthorized):
                auth_attempts_total.labels(result="unauthorized").inc()
                logger.warning(
                    "authentication_failed", username=username, message=outcome.message
                )
            else:
                auth_attempts_total.labels(result="error").inc()
                logger.error(
                    "authentication_system_error",
                    username=username,
                    message=outcome.message,
                    error_type=type(e).__name__,
                    exc_info=e,
                )
            return outcome

        auth_attempts_total.labels(result="success").inc()
        groups = [team.name for team in teams]
        logger.info("authentication_succeeded", username=username, groups=groups)
        return Authorized(groups=groups)

    async def authenticate(self, username: str, token: str, callback: AuthCallback) -> None:
        outcome = await self.login(username, token)
        if isinstance(outcome, Authorized):
            callback(None, outcome.groups)
        else:
            callback(AuthErrorInfo.from_outcome(outcome), False)

    async def has_permission(
        self, user: RemoteUser, package_name: str, permission: PackagePermission
    ) -> bool:
        permissions = await self.user_permissions.package_permissions_for_user_for_package(
            user, package_name
        )
        allowed = permission in permissions
        logger.debug(
            "permission_checked",
            username=user.name,
            package=package_name,
            permission=permission.value,
            allowed=allowed,
        )
        return allowed

    async def allow_access(self, user: RemoteUser, package_name: str, callback: AccessCallback) -> None:
        await self._check(user, package_name, PackagePermission.READ, "access", callback)

    async def allow_publish(self, user: RemoteUser, package_name: str, callback: AccessCallback) -> None:
        await self._check(user, package_name, PackagePermission.WRITE, "publish", callback)

    async def allow_unpublish(self, user: RemoteUser, package_name: str, callback: AccessCallback) -> None:
        # Anyone who can publish a package can unpublish it
        await self._check(user, package_name, PackagePermission.WRITE, "unpublish", callback)

    async def adduser(self, username: str, password: str, callback: AuthCallback) -> None:
        # Users are managed by the organization, never registered here
        callback(None, False)

    async def _check(
        self,
        user: RemoteUser,
        package_name: str,
        permission: PackagePermission,
        action: str,
        callback: AccessCallback,
    ) -> None:
        try:
            allowed = await self.has_permission(user, package_name, permission)
        except Exception as e:
            logger.error(
                "access_check_failed",
                username=user.name,
                package=package_name,
                action=action,
                error_type=type(e).__name__,
                message=str(e),
                exc_info=e,
            )
            callback(e, False)
            return

        access_checks_total.labels(action=action, allowed=str(allowed).lower()).inc()
        callback(None, allowed)
