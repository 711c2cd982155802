from fastapi import Request

from registry_auth.core.config import Settings, get_settings
from registry_auth.plugin import PackageAuthPlugin


def get_plugin(request: Request) -> PackageAuthPlugin:
    return request.app.state.plugin


def get_settings_dep(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()
