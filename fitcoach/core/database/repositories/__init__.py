"""
Repositories.

One repository per aggregate, each wrapping an ``AsyncSession``. Services
compose them; API routers never build queries for these tables directly.
"""

from .accounts import EntitlementRepository, ProfileRepository
from .articles import ArticleRepository
from .base import AsyncBaseRepository, QueryBuilder, SQLModelRepository
from .billing import PaymentRepository, StripeEventRepository, SubscriberRepository
from .bookings import BookingRepository
from .habits import HabitRepository
from .programs import ProgramRepository, ProgressionEventRepository, SetLogRepository, WorkoutSessionRepository
from .static_program import StaticProgramRepository
from .support import SupportRepository

__all__ = [
    "ArticleRepository",
    "AsyncBaseRepository",
    "BookingRepository",
    "EntitlementRepository",
    "HabitRepository",
    "PaymentRepository",
    "ProfileRepository",
    "ProgramRepository",
    "ProgressionEventRepository",
    "QueryBuilder",
    "SQLModelRepository",
    "SetLogRepository",
    "StaticProgramRepository",
    "StripeEventRepository",
    "SubscriberRepository",
    "SupportRepository",
    "WorkoutSessionRepository",
]
