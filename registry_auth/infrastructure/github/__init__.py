"""GraphQL access to the organization host."""
from .client import GraphQLClient

__all__ = [
    'GraphQLClient'
]
