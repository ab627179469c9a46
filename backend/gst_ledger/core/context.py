"""
Tenant context
Project: GST Ledger

The identity of the caller, passed explicitly into every ledger operation.
"""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class TenantContext:
    """
    Who is acting, and on behalf of which team.

    Attributes:
        team_id: tenant that owns every row the operation touches
        actor_id: user recorded in the activity log
    """

    team_id: uuid.UUID
    actor_id: uuid.UUID
