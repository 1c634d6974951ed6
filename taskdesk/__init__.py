"""taskdesk - role-scoped task and customer tracking backend."""

__version__ = "0.1.0"
