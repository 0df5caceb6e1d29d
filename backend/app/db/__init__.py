from app.db.models import AuditLog, Base

__all__ = [
    "Base",
    "AuditLog",
]
