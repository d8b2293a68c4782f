from typing import List

import strawberry

from gympulse.graphql.classes.types import ClassStats
from gympulse.graphql.members.types import Member, MembershipStats
from gympulse.graphql.payments.types import PaymentStats
from gympulse.graphql.trainers.types import TrainerStats


@strawberry.type
class DashboardStats:
    members: MembershipStats
    trainers: TrainerStats
    classes: ClassStats
    payments: PaymentStats
    expiring_memberships: List[Member]


@strawberry.type
class RefreshResult:
    success: bool
    message: str
    updated: int = 0
