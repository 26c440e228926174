"""Access control engine: tenant-scoped users, groups and roles."""

__version__ = "1.0.0"
