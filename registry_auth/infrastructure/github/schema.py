"""Typed views of the GraphQL responses.

Pages are validated here, at the ingestion boundary, so the services only
ever see well-formed data. Permission labels are kept as plain strings:
rejecting unknown labels is the permission mapper's job.
"""

from typing import Any, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from registry_auth.core.errors import ResponseValidationError


class GraphQLModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class PageInfo(GraphQLModel):
    has_next_page: bool = False
    end_cursor: Optional[str] = None


class Login(GraphQLModel):
    login: str


# VerifyUserIdentity

class VerifyUserIdentityResponse(GraphQLModel):
    viewer: Login


# VerifyOrganization

class MemberEdge(GraphQLModel):
    node: Optional[Login] = None


class MembersWithRole(GraphQLModel):
    page_info: PageInfo
    edges: List[Optional[MemberEdge]] = Field(default_factory=list)


class MembershipOrganization(GraphQLModel):
    members_with_role: MembersWithRole


class VerifyOrganizationResponse(GraphQLModel):
    organization: Optional[MembershipOrganization] = None


# GetOrganizationTeams

class TeamMembers(GraphQLModel):
    nodes: List[Optional[Login]] = Field(default_factory=list)


class TeamNode(GraphQLModel):
    name: str
    members: TeamMembers


class TeamEdge(GraphQLModel):
    node: Optional[TeamNode] = None


class TeamConnection(GraphQLModel):
    page_info: PageInfo
    edges: List[Optional[TeamEdge]] = Field(default_factory=list)


class TeamsOrganization(GraphQLModel):
    teams: TeamConnection


class OrganizationTeamsResponse(GraphQLModel):
    organization: Optional[TeamsOrganization] = None


# GetOrganizationRepositoryPermissions

class PermissionSourceOrigin(GraphQLModel):
    typename: str = Field(alias="__typename")
    name: Optional[str] = None
    login: Optional[str] = None


class PermissionSource(GraphQLModel):
    permission: Optional[str] = None
    source: PermissionSourceOrigin


class CollaboratorEdge(GraphQLModel):
    node: Login
    permission_sources: Optional[List[PermissionSource]] = None


class CollaboratorConnection(GraphQLModel):
    edges: List[Optional[CollaboratorEdge]] = Field(default_factory=list)


class RepositoryPermissionNode(GraphQLModel):
    name: str
    collaborators: Optional[CollaboratorConnection] = None


class RepositoryPermissionEdge(GraphQLModel):
    node: Optional[RepositoryPermissionNode] = None


class RepositoryPermissionConnection(GraphQLModel):
    page_info: PageInfo
    edges: List[Optional[RepositoryPermissionEdge]] = Field(default_factory=list)


class RepositoryPermissionsOrganization(GraphQLModel):
    repositories: RepositoryPermissionConnection


class RepositoryPermissionsResponse(GraphQLModel):
    organization: Optional[RepositoryPermissionsOrganization] = None


# GetOrganizationPackageFiles

class GitObject(GraphQLModel):
    typename: str = Field(alias="__typename")
    text: Optional[str] = None


class PackageFileNode(GraphQLModel):
    name: str
    object: Optional[GitObject] = None


class PackageFileEdge(GraphQLModel):
    node: Optional[PackageFileNode] = None


class PackageFileConnection(GraphQLModel):
    page_info: PageInfo
    edges: List[Optional[PackageFileEdge]] = Field(default_factory=list)


class PackageFilesOrganization(GraphQLModel):
    repositories: PackageFileConnection


class PackageFilesResponse(GraphQLModel):
    organization: Optional[PackageFilesOrganization] = None


M = TypeVar("M", bound=GraphQLModel)


def parse_page(model: Type[M], page: Mapping[str, Any], query: str) -> M:
    try:
        return model.model_validate(page)
    except PydanticValidationError as e:
        raise ResponseValidationError(
            query, e.errors(include_url=False, include_context=False)
        ) from e


def parse_pages(model: Type[M], pages: List[Mapping[str, Any]], query: str) -> List[M]:
    return [parse_page(model, page, query) for page in pages]


def page_info_at(page: Mapping[str, Any], *path: str) -> Optional[PageInfo]:
    """Return the ``pageInfo`` of the connection found at ``path`` in a raw page."""
    node: Any = page
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    if not isinstance(node, Mapping) or not isinstance(node.get("pageInfo"), Mapping):
        return None
    return parse_page(PageInfo, node["pageInfo"], "pageInfo")
