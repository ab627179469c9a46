"""
Activity log service
Project: GST Ledger
"""

import uuid

from gst_ledger.core.context import TenantContext
from gst_ledger.models import ActivityLog
from gst_ledger.repositories.base import UnitOfWork


class ActivityService:
    """Appends audit rows inside the caller's unit of work."""

    async def record(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID,
        description: str,
    ) -> ActivityLog:
        entry = ActivityLog(
            team_id=ctx.team_id,
            actor_id=ctx.actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
        )
        return await uow.activity.add(entry)

    async def list_for_entity(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        entity_type: str,
        entity_id: uuid.UUID,
    ) -> list[ActivityLog]:
        return await uow.activity.list_for_entity(ctx.team_id, entity_type, entity_id)
