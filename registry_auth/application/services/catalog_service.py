"""Package catalog: which repository publishes which package"""

import json
from typing import Dict, List, Optional, Pattern

from registry_auth.application.services.base import ServiceBase
from registry_auth.core.permissions.models import PackageCatalog
from registry_auth.infrastructure.cache import ResultCache
from registry_auth.infrastructure.github.client import GraphQLClient
from registry_auth.infrastructure.github.queries import GET_ORGANIZATION_PACKAGE_FILES
from registry_auth.infrastructure.github.schema import (
    PackageFilesResponse,
    page_info_at,
    parse_pages,
)


class CatalogService(ServiceBase):
    """Builds the package name -> repository name map from manifest files."""

    def __init__(
        self,
        client: GraphQLClient,
        cache: ResultCache,
        organization: str,
        manifest_path: str = "package.json",
        include_repositories: Optional[List[str]] = None,
        exclude_repositories: Optional[List[str]] = None,
        repository_pattern: Optional[Pattern[str]] = None,
    ):
        super().__init__(cache)
        self.client = client
        self.organization = organization
        self.manifest_path = manifest_path
        self.include_repositories = include_repositories
        self.exclude_repositories = exclude_repositories
        self.repository_pattern = repository_pattern

    @staticmethod
    def get_package_name(manifest: str) -> Optional[str]:
        """Extract the declared package name from a manifest, or None if there is none."""
        try:
            data = json.loads(manifest)
        except ValueError:
            return None

        if not isinstance(data, dict):
            return None

        name = data.get("name")
        if isinstance(name, str) and name:
            return name
        return None

    def is_repository_published(self, repository: str) -> bool:
        """Apply the include list, the exclude list and the name pattern, in that order."""
        if self.include_repositories is not None and repository not in self.include_repositories:
            return False
        if self.exclude_repositories is not None and repository in self.exclude_repositories:
            return False
        if self.repository_pattern is not None and not self.repository_pattern.search(repository):
            return False
        return True

    async def package_files(self) -> Dict[str, str]:
        """Map every repository holding a manifest to the manifest's text."""
        self.logger.debug("package_files_requested")
        return await self.cache.get("package_files", self._fetch_package_files)

    async def package_names(self) -> PackageCatalog:
        """Map package names to the repository that publishes them."""
        self.logger.debug("package_names_requested")
        return await self.cache.get("package_names", self._build_package_names)

    async def _fetch_package_files(self) -> Dict[str, str]:
        pages = await self.client.get_all(
            GET_ORGANIZATION_PACKAGE_FILES,
            {
                "login": self.organization,
                "expression": f"HEAD:{self.manifest_path}",
            },
            lambda page: page_info_at(page, "organization", "repositories"),
        )

        package_files: Dict[str, str] = {}
        for page in parse_pages(PackageFilesResponse, pages, "GetOrganizationPackageFiles"):
            if page.organization is None:
                continue

            for edge in page.organization.repositories.edges:
                if edge is None or edge.node is None or edge.node.object is None:
                    continue

                blob = edge.node.object
                if blob.typename == "Blob" and blob.text:
                    package_files[edge.node.name] = blob.text

        self.logger.debug(
            "package_files_fetched",
            repositories=sorted(package_files),
        )
        return package_files

    async def _build_package_names(self) -> PackageCatalog:
        package_files = await self.package_files()

        package_names: PackageCatalog = {}
        for repository, manifest in package_files.items():
            if not self.is_repository_published(repository):
                continue

            package_name = self.get_package_name(manifest)
            if package_name is None:
                self.logger.debug("manifest_ignored", repository=repository)
                continue

            previous = package_names.get(package_name)
            if previous is not None and previous != repository:
                self.logger.warning(
                    "package_name_collision",
                    package=package_name,
                    repository=repository,
                    replaced_repository=previous,
                )

            package_names[package_name] = repository

        self.logger.debug("package_names_resolved", package_names=package_names)
        return package_names
