import logging

logger = logging.getLogger("auth")


def client_ip(request) -> str | None:
    """First hop of X-Forwarded-For when behind the load balancer, else REMOTE_ADDR."""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def log_auth_event(action: str, request, user=None, status: str = "success"):
    """Log a dict payload; JsonFormatter merges it into the record."""
    payload = {"action": action, "ip": client_ip(request), "status": status}
    if user is not None:
        payload.update(user_id=user.pk, role=getattr(user, "role", None))
    logger.info(payload)
