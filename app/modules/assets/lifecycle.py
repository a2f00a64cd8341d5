# Status is only written through transition(); nothing moves an asset back to draft.
import logging

from app.core.base import utcnow
from app.core.errors import InvalidTransitionError
from app.modules.assets.models import MediaAsset

log = logging.getLogger(__name__)

DRAFT = "draft"
LABELED = "labeled"
EXPORTED = "exported"
STATUSES = (DRAFT, LABELED, EXPORTED)

VALID_NEXT = {
    DRAFT: {LABELED},
    LABELED: {LABELED, EXPORTED},
    EXPORTED: {LABELED, EXPORTED},
}

def can_transition(current: str, target: str) -> bool:
    return target in VALID_NEXT.get(current, set())

def transition(asset: MediaAsset, target: str) -> bool:
    """Apply `target` to the asset. Returns False when nothing changed."""
    current = asset.status
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move asset from '{current}' to '{target}'", field="status"
        )

    # labeled -> labeled is a no-op; labeled_at keeps the first completion time
    if current == LABELED and target == LABELED:
        return False

    now = utcnow()
    asset.status = target
    if target == LABELED:
        asset.labeled_at = now
    elif target == EXPORTED:
        asset.exported_at = now
    log.info("asset %s status %s -> %s", asset.id, current, target)
    return True
