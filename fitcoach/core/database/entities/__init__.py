"""
Database entity models.

Each module groups the tables of one business area:

- accounts: profiles and per-product entitlements
- billing: payment provider customers, payments and processed webhook events
- programs: personal training programs, their days and items, workout
  sessions, set logs and progression events
- static_program: the shared self-guided program and per-user progress
- habits: custom habits and daily habit check-ins
- articles: evidence-based reads
- support: support conversations and messages
- bookings: paid consultation booking requests
"""

from . import accounts, articles, billing, bookings, habits, programs, static_program, support

__all__ = [
    "accounts",
    "articles",
    "billing",
    "bookings",
    "habits",
    "programs",
    "static_program",
    "support",
]
