import strawberry

from gympulse.graphql.auth.mutations import AuthMutation
from gympulse.graphql.auth.queries import AuthQuery
from gympulse.graphql.bookings.mutations import BookingMutation
from gympulse.graphql.bookings.queries import BookingQuery
from gympulse.graphql.classes.mutations import ClassMutation
from gympulse.graphql.classes.queries import ClassQuery
from gympulse.graphql.dashboard.mutations import DashboardMutation
from gympulse.graphql.dashboard.queries import DashboardQuery
from gympulse.graphql.members.mutations import MemberMutation
from gympulse.graphql.members.queries import MembersQuery
from gympulse.graphql.memberships.mutations import MembershipPlanMutation
from gympulse.graphql.memberships.queries import MembershipPlanQuery
from gympulse.graphql.payments.mutations import PaymentMutation
from gympulse.graphql.payments.queries import PaymentQuery
from gympulse.graphql.trainers.mutations import TrainerMutation
from gympulse.graphql.trainers.queries import TrainerQuery
from gympulse.graphql.users.mutations import UserMutation
from gympulse.graphql.users.queries import UserQuery


@strawberry.type
class Query(
    AuthQuery,
    UserQuery,
    MembershipPlanQuery,
    MembersQuery,
    TrainerQuery,
    ClassQuery,
    BookingQuery,
    PaymentQuery,
    DashboardQuery,
):
    @strawberry.field
    def hello(self) -> str:
        return "Hello from GymPulse!"


@strawberry.type
class Mutation(
    AuthMutation,
    UserMutation,
    MembershipPlanMutation,
    MemberMutation,
    TrainerMutation,
    ClassMutation,
    BookingMutation,
    PaymentMutation,
    DashboardMutation,
):
    pass


schema = strawberry.Schema(query=Query, mutation=Mutation)
