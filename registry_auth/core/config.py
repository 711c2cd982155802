import re
from typing import Any, List, Literal, Mapping, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from registry_auth.core.errors import ConfigurationError

DEFAULT_GITHUB_API_URL = "https://api.github.com/graphql"
DEFAULT_CACHE_TTL = 300
DEFAULT_PAGE_SIZE = 20


class PluginConfig(BaseModel):
    """Validated options for the permission resolver"""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    organization: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1, repr=False)
    repository_pattern: Optional[Pattern[str]] = Field(
        default=None, alias="repositoryPattern"
    )
    include_repositories: Optional[List[str]] = Field(
        default=None, alias="includeRepositories"
    )
    exclude_repositories: Optional[List[str]] = Field(
        default=None, alias="excludeRepositories"
    )
    github_api_url: str = Field(default=DEFAULT_GITHUB_API_URL, alias="githubApiUrl")
    manifest_path: str = Field(default="package.json", min_length=1, alias="manifestPath")
    cache_ttl: float = Field(default=DEFAULT_CACHE_TTL, gt=0, alias="cacheTtl")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100, alias="pageSize")
    request_timeout: float = Field(default=30.0, gt=0, alias="requestTimeout")

    @field_validator("repository_pattern", mode="before")
    @classmethod
    def compile_repository_pattern(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, re.Pattern):
            return v
        try:
            return re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid repository pattern: {e}") from e

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PluginConfig":
        """Validate a raw options mapping, raising ConfigurationError on failure."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            fields = sorted(
                {".".join(str(loc) for loc in err["loc"]) for err in e.errors()}
            )
            raise ConfigurationError(
                f"Invalid configuration: {', '.join(fields)}",
                {"errors": e.errors(include_url=False, include_context=False)},
            ) from e


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="registry-auth", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment mode"
    )

    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_prefix: str = Field(default="/api/v1", description="API prefix")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format"
    )

    # Organization access
    organization: Optional[str] = Field(
        default=None, description="Organization whose teams and repositories grant access"
    )
    token: Optional[str] = Field(
        default=None, description="Token with read access to the whole organization"
    )
    repository_pattern: Optional[str] = Field(
        default=None, description="Only repositories matching this regex publish packages"
    )
    include_repositories: Optional[List[str]] = Field(
        default=None, description="Only these repositories publish packages"
    )
    exclude_repositories: Optional[List[str]] = Field(
        default=None, description="These repositories never publish packages"
    )
    github_api_url: str = Field(
        default=DEFAULT_GITHUB_API_URL, description="GraphQL endpoint"
    )
    manifest_path: str = Field(
        default="package.json", description="Manifest file declaring the package name"
    )
    cache_ttl: float = Field(
        default=DEFAULT_CACHE_TTL, description="Result cache TTL in seconds"
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE, description="Items requested per GraphQL page"
    )
    request_timeout: float = Field(
        default=30.0, description="Upstream request timeout in seconds"
    )

    metrics_enabled: bool = Field(default=True, description="Enable metrics endpoint")

    @field_validator("log_format", mode="before")
    @classmethod
    def validate_log_format(cls, v, info):
        if info.data.get("environment") == "production":
            return "json"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def plugin_config(self) -> PluginConfig:
        return PluginConfig.from_mapping(
            {
                "organization": self.organization,
                "token": self.token,
                "repository_pattern": self.repository_pattern,
                "include_repositories": self.include_repositories,
                "exclude_repositories": self.exclude_repositories,
                "github_api_url": self.github_api_url,
                "manifest_path": self.manifest_path,
                "cache_ttl": self.cache_ttl,
                "page_size": self.page_size,
                "request_timeout": self.request_timeout,
            }
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
