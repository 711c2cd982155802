"""Infrastructure layer: cache, logging, metrics and the GraphQL client."""
