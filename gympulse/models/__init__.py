# GymPulse models
from gympulse.models.usersModel import User, ROLES
from gympulse.models.membersModel import Member, MembershipPlan, MEMBERSHIP_STATUSES
from gympulse.models.trainersModel import Trainer
from gympulse.models.classModel import GymClass, ClassBooking, CLASS_STATUSES, BOOKING_STATUSES
from gympulse.models.paymentsModel import (
    Payment, PAYMENT_METHODS, PAYMENT_TYPES, PAYMENT_STATUSES, EXTENDING_TYPES
)
from gympulse.models.sessionModel import Session

__all__ = [
    "User", "ROLES",
    "Member", "MembershipPlan", "MEMBERSHIP_STATUSES",
    "Trainer",
    "GymClass", "ClassBooking", "CLASS_STATUSES", "BOOKING_STATUSES",
    "Payment", "PAYMENT_METHODS", "PAYMENT_TYPES", "PAYMENT_STATUSES", "EXTENDING_TYPES",
    "Session",
]
