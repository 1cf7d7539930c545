"""Entitlement and trial rules.

Every check here is a pure predicate over timestamps and flags so that API
dependencies, services and the weekly job share one definition of "has access".
Entitlements are duck-typed: anything with ``product``, ``status``, ``paused``,
``expires_at`` and ``trial_ends_at`` attributes works (ORM rows, pydantic
models). Naive datetimes are treated as UTC.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel

GRACE_PERIOD_HOURS = 48
WARNING_DAYS = 3
URGENT_DAYS = 1


class Product(str, Enum):
    STATIC = "static"
    PT = "pt"


class EntitlementStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class GuardKind(str, Enum):
    AUTH = "auth"
    STATIC = "static"
    PT = "pt"
    PT_OR_TRIAL = "pt_or_trial"
    STATIC_OR_INFO = "static_or_info"
    ADMIN = "admin"


LOGIN_PATH = "/login"
PRICING_PATH = "/pricing"
PROGRAM_INFO_PATH = "/programs/info"
HOME_PATH = "/"


class AccessDecision(BaseModel):
    is_admin: bool = False
    can_static: bool = False
    can_pt: bool = False
    reason: str = "anon"


class TrialStatus(BaseModel):
    is_on_trial: bool = False
    days_remaining: Optional[int] = None
    trial_ends_at: Optional[datetime] = None
    product: Optional[str] = None
    is_expired: bool = False
    is_warning_period: bool = False
    is_urgent: bool = False
    is_in_grace_period: bool = False
    grace_period_ends_at: Optional[datetime] = None
    hours_remaining_in_grace: Optional[int] = None


class ProgramAccess(BaseModel):
    has_assigned_programs: bool
    is_trial_user: bool
    is_paid_user: bool
    can_access_programs: bool
    should_show_upgrade_prompt: bool


class GuardResult(BaseModel):
    allowed: bool
    redirect_to: Optional[str] = None


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _value(field: Any) -> Any:
    return field.value if isinstance(field, Enum) else field


def entitlement_is_live(entitlement: Any, now: Optional[datetime] = None) -> bool:
    """Whether an entitlement currently grants access.

    A paused entitlement never does. Active ones are live until ``expires_at``
    (no expiry means forever); trialing ones until ``trial_ends_at``.
    """
    if entitlement is None or getattr(entitlement, "paused", False):
        return False
    now = as_utc(now) or utcnow()
    status = _value(entitlement.status)
    if status == EntitlementStatus.ACTIVE.value:
        expires_at = as_utc(entitlement.expires_at)
        return expires_at is None or expires_at > now
    if status == EntitlementStatus.TRIALING.value:
        trial_ends_at = as_utc(entitlement.trial_ends_at)
        return trial_ends_at is not None and trial_ends_at > now
    return False


def evaluate_access(
    profile_role: Optional[str],
    entitlements: Iterable[Any],
    now: Optional[datetime] = None,
    *,
    authenticated: bool = True,
) -> AccessDecision:
    """Resolve what a user may open.

    Args:
        profile_role: The ``role`` column of the user's profile, if any.
        entitlements: All entitlement rows of the user.
        now: Evaluation instant, defaults to the current UTC time.
        authenticated: ``False`` for anonymous callers.

    Returns:
        AccessDecision with the reason that produced it.
    """
    if not authenticated:
        return AccessDecision(reason="anon")
    if profile_role == "admin":
        return AccessDecision(is_admin=True, can_static=True, can_pt=True, reason="admin")

    can_static = False
    can_pt = False
    for ent in entitlements:
        if not entitlement_is_live(ent, now):
            continue
        product = _value(ent.product)
        if product == Product.STATIC.value:
            can_static = True
        elif product == Product.PT.value:
            can_pt = True
    return AccessDecision(can_static=can_static, can_pt=can_pt, reason="direct-entitlements")


def difference_in_days(later: datetime, earlier: datetime) -> int:
    """Whole days between two instants, truncated toward zero."""
    seconds = (later - earlier).total_seconds()
    days = seconds / 86400
    return math.floor(days) if days >= 0 else math.ceil(days)


def trial_status(entitlement: Any, now: Optional[datetime] = None) -> TrialStatus:
    """Trial countdown and grace period for a trialing entitlement.

    ``days_remaining`` is clamped at zero in the result. The trial counts as
    expired once a full day has passed since ``trial_ends_at``; the grace
    period lasts 48 hours from the trial end.
    """
    if entitlement is None or _value(entitlement.status) != EntitlementStatus.TRIALING.value:
        return TrialStatus()
    ends_at = as_utc(entitlement.trial_ends_at)
    if ends_at is None:
        return TrialStatus()

    now = as_utc(now) or utcnow()
    days = difference_in_days(ends_at, now)
    is_expired = days < 0
    grace_end = ends_at + timedelta(hours=GRACE_PERIOD_HOURS)
    in_grace = is_expired and now < grace_end
    hours_in_grace = None
    if in_grace:
        hours_in_grace = max(0, math.floor((grace_end - now).total_seconds() / 3600))

    return TrialStatus(
        is_on_trial=not is_expired,
        days_remaining=max(0, days),
        trial_ends_at=ends_at,
        product=_value(entitlement.product),
        is_expired=is_expired,
        is_warning_period=0 <= days <= WARNING_DAYS,
        is_urgent=0 <= days <= URGENT_DAYS,
        is_in_grace_period=in_grace,
        grace_period_ends_at=grace_end,
        hours_remaining_in_grace=hours_in_grace,
    )


def program_access(decision: AccessDecision, has_assigned_programs: bool) -> ProgramAccess:
    is_paid = decision.can_static or decision.can_pt
    is_trial = not is_paid
    return ProgramAccess(
        has_assigned_programs=has_assigned_programs,
        is_trial_user=is_trial,
        is_paid_user=is_paid,
        can_access_programs=is_paid or (is_trial and has_assigned_programs),
        should_show_upgrade_prompt=is_trial and not has_assigned_programs,
    )


def guard(kind: GuardKind | str, user: Any, decision: AccessDecision) -> GuardResult:
    """Evaluate a route guard.

    Unauthenticated users go to the login page; users lacking the product go
    to pricing (or to the program info page for ``static_or_info``). Admins
    pass every guard.
    """
    kind = GuardKind(kind)
    if user is None:
        return GuardResult(allowed=False, redirect_to=LOGIN_PATH)
    if decision.is_admin or kind == GuardKind.AUTH:
        return GuardResult(allowed=True)

    if kind == GuardKind.STATIC:
        allowed, fallback = decision.can_static, PRICING_PATH
    elif kind == GuardKind.PT:
        allowed, fallback = decision.can_pt, PRICING_PATH
    elif kind == GuardKind.PT_OR_TRIAL:
        allowed, fallback = decision.can_pt or decision.can_static, PRICING_PATH
    elif kind == GuardKind.STATIC_OR_INFO:
        allowed, fallback = decision.can_static, PROGRAM_INFO_PATH
    else:
        allowed, fallback = False, HOME_PATH

    return GuardResult(allowed=True) if allowed else GuardResult(allowed=False, redirect_to=fallback)
