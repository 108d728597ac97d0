"""
Model registry for the licenses app; definitions live in the infrastructure layer.
"""
from licenses.infrastructure.models import AuditLog, License  # noqa: F401
