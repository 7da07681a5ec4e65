import uuid, json
import logging
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit(db: Session, actor: str, action: str, entity_type: str, entity_id: str, details: dict | None = None) -> AuditLog:
    """Stage an audit row on the caller's session; it is committed with the caller's change."""
    entry = AuditLog(
        id=str(uuid.uuid4()),
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    )
    db.add(entry)
    logger.info("audit %s %s/%s by %s", action, entity_type, entity_id, actor)
    return entry
