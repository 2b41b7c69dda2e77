"""vidguard: multi-tenant video sensitivity scoring service."""

__version__ = "1.0.0"
