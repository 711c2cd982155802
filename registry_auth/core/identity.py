"""Username normalization and the synthetic organization team.

Remote logins may differ in case from what a user types at the registry
prompt, so every comparison, map key and cache key goes through
``normalize_username``.
"""

from registry_auth.core.permissions.models import Team


def normalize_username(username: str) -> str:
    return username.casefold()


def same_user(a: str, b: str) -> bool:
    return normalize_username(a) == normalize_username(b)


def organization_team(organization: str, username: str) -> Team:
    """The virtual team every authenticated organization member belongs to.

    It only exists in the answer to "which teams is this user in" and is
    never cached or stored as a real team.
    """
    return Team(name=organization, members=(normalize_username(username),))
