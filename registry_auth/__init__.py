"""Package registry authentication backed by an organization's teams and repositories."""

__version__ = "0.1.0"
