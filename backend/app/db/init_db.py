from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.models import AuditLog, Base
from app.db.session import engine


def init_db() -> None:
    cfg = get_settings()
    if inspect(engine).has_table(AuditLog.__tablename__):
        return

    # Local demo mode: create the audit table so the app can boot.
    # In non-dev, refuse to run against an unprovisioned schema.
    if cfg.is_local_dev and str(cfg.database_url).startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        return
    raise RuntimeError(
        "Database schema is missing. Provision the audit_logs table before starting the API."
    )


if __name__ == "__main__":
    init_db()
