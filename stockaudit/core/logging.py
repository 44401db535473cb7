import logging
from typing import Any

audit_logger = logging.getLogger("stockaudit.audit_trail")

def log_user_action(user_id: int, action: str, entity: str, entity_id: Any = None, **details: Any):
    """Record an audit-relevant action, e.g. plan replaced or schedule generated"""
    target = entity if entity_id is None else f"{entity} {entity_id}"
    extra = "".join(f" {key}={value}" for key, value in sorted(details.items()))
    audit_logger.info(f"user={user_id} action={action} target={target}{extra}")
