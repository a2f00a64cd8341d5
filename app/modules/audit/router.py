import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from app.core.db import get_session
from app.core.security import get_principal, Principal, require_scopes
from app.modules.audit.models import AuditEvent

router = APIRouter()

@router.get("/audit", dependencies=[Depends(require_scopes("audit:read"))])
async def list_audit(
    resource_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(50, ge=1, le=200),
):
    # callers only see their own trail
    q = select(AuditEvent).where(
        AuditEvent.org_id == principal.org_id,
        AuditEvent.actor_user_id == principal.user_id,
        AuditEvent.deleted_at.is_(None),
    )
    if resource_id:
        q = q.where(AuditEvent.resource_id == str(resource_id))
    q = q.order_by(desc(AuditEvent.occurred_at)).limit(limit)
    res = await session.execute(q)
    # Return raw dicts for simplicity
    return [
        {
            "id": row.id,
            "org_id": row.org_id,
            "actor_user_id": row.actor_user_id,
            "action": row.action,
            "resource_type": row.resource_type,
            "resource_id": row.resource_id,
            "purpose": row.purpose,
            "success": row.success,
            "occurred_at": row.occurred_at,
        }
        for row in res.scalars().all()
    ]
