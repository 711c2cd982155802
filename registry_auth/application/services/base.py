"""Base class for the permission resolution services.

Every service reads through the shared result cache and logs with a
logger bound to its own name.
"""

from registry_auth.infrastructure.cache import ResultCache
from registry_auth.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ServiceBase:
    """Common wiring for application services."""

    def __init__(self, cache: ResultCache):
        self.cache = cache
        self.logger = logger.bind(service=self.__class__.__name__)
