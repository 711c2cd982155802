"""GraphQL documents sent to the organization host.

Paginated queries follow the Relay connection convention and take
``$first``/``$after``; the client fills them in.
"""

VERIFY_USER_IDENTITY = """
query VerifyUserIdentity {
  viewer {
    login
  }
}
"""

VERIFY_ORGANIZATION = """
query VerifyOrganization($login: String!, $first: Int, $after: String) {
  organization(login: $login) {
    membersWithRole(first: $first, after: $after) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          login
        }
      }
    }
  }
}
"""

GET_ORGANIZATION_TEAMS = """
query GetOrganizationTeams($login: String!, $first: Int, $after: String) {
  organization(login: $login) {
    teams(first: $first, after: $after) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          name
          members(first: 100) {
            nodes {
              login
            }
          }
        }
      }
    }
  }
}
"""

GET_ORGANIZATION_REPOSITORY_PERMISSIONS = """
query GetOrganizationRepositoryPermissions($login: String!, $first: Int, $after: String) {
  organization(login: $login) {
    repositories(first: $first, after: $after) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          name
          collaborators(first: 100) {
            edges {
              node {
                login
              }
              permissionSources {
                permission
                source {
                  __typename
                  ... on Organization {
                    login
                  }
                  ... on Repository {
                    name
                  }
                  ... on Team {
                    name
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

GET_ORGANIZATION_PACKAGE_FILES = """
query GetOrganizationPackageFiles($login: String!, $expression: String!, $first: Int, $after: String) {
  organization(login: $login) {
    repositories(first: $first, after: $after) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          name
          object(expression: $expression) {
            __typename
            ... on Blob {
              text
            }
          }
        }
      }
    }
  }
}
"""


def operation_name(query: str) -> str:
    """Extract the operation name of a query document, for logs and metrics."""
    for token in query.split():
        if token in ("query", "mutation"):
            continue
        return token.split("(", 1)[0].split("{", 1)[0] or "anonymous"
    return "anonymous"
