"""Multi-tenant org, app and user provisioning."""

__version__ = "0.1.0"
