from typing import Optional

from ..models import AuditLog, Business


def log_action(
    *,
    action: str,
    instance,
    user=None,
    business: Optional[Business] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Runs inside the caller's transaction, so a rolled-back
    operation leaves no audit row behind.
    """

    if not business:
        business = getattr(instance, "business", None)

    # anonymous users are recorded as system actions
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    AuditLog.objects.create(
        business=business,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
