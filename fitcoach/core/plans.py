"""Subscription catalog, price mapping and upgrade prompts."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .access import Product, TrialStatus, utcnow
from .errors import PaymentError

SELF_GUIDED_PRICE_ID = "price_1SBCY0EOy7gy4lEEyRwBvuyw"
GUIDED_PRICE_ID = "price_1SBCYgEOy7gy4lEEWJWNz8gW"
TRANSFORMATION_PRICE_ID = "price_1SBCZeEOy7gy4lEEc3DwQzTu"

TRANSFORMATION_ACCESS_DAYS = 365
TRIAL_DAYS = 7


class Tier(str, Enum):
    FREE = "free"
    TRIAL = "trial"
    SELF_GUIDED = "self_guided"
    GUIDED = "guided"
    TRANSFORMATION = "transformation"


class Interval(str, Enum):
    MONTH = "month"
    YEAR = "year"
    ONE_TIME = "one_time"


class Plan(BaseModel):
    id: str
    name: str
    description: str
    price: float
    currency: str = "EUR"
    interval: Interval
    tier: Tier
    features: list[str] = Field(default_factory=list)
    trial_days: Optional[int] = None
    price_id: Optional[str] = None
    is_popular: bool = False


class Grant(BaseModel):
    """An entitlement to upsert after a successful payment."""

    product: Product
    status: str = "active"
    paused: bool = False
    expires_at: Optional[datetime] = None


class UpgradePrompt(BaseModel):
    id: str
    trigger: str
    title: str
    description: str
    cta_text: str
    target_plan: str
    show_after_days: Optional[int] = None


PLANS: dict[str, Plan] = {
    "trial_self_guided": Plan(
        id="trial_self_guided",
        name="7-päevane proov",
        description="Alusta tasuta ja vaata, kuidas su keha hakkab muutuma",
        price=0,
        interval=Interval.MONTH,
        tier=Tier.TRIAL,
        trial_days=TRIAL_DAYS,
        features=[
            "7 päeva piiramatut ligipääsu",
            "Kõik treeningprogrammid",
            "Harjutuste videojuhised",
            "Progressi jälgimine",
            "Tervisetõed ja mindfulness",
        ],
    ),
    "self_guided": Plan(
        id="self_guided",
        name="Self-Guided",
        description="Treeni omas tempos, kindla suuna ja struktuuriga",
        price=19.99,
        interval=Interval.MONTH,
        tier=Tier.SELF_GUIDED,
        price_id=SELF_GUIDED_PRICE_ID,
        features=[
            "Kõik valmiskavad ja harjutused",
            "Progressi jälgimine ja statistika",
            "Tervisetõed ja mindfulness-õpped",
            "Uued programmid iga kuu",
            "Email tugi 48h jooksul",
        ],
    ),
    "guided": Plan(
        id="guided",
        name="Guided",
        description="Isiklik juhendaja su taskus",
        price=49.99,
        interval=Interval.MONTH,
        tier=Tier.GUIDED,
        price_id=GUIDED_PRICE_ID,
        is_popular=True,
        features=[
            "Kõik Self-Guided funktsioonid",
            "Iganädalased personaalsed tagasisided",
            "Kava kohandused sinu progressi järgi",
            "Prioriteetne tugi 24h jooksul",
            "1:1 konsultatsioonid (email/chat)",
        ],
    ),
    "transformation": Plan(
        id="transformation",
        name="Transformation",
        description="6 nädalat, mis muudavad su elu",
        price=199,
        interval=Interval.ONE_TIME,
        tier=Tier.TRANSFORMATION,
        price_id=TRANSFORMATION_PRICE_ID,
        features=[
            "5× privaatsed videokonsultatsioonid",
            "Täielikult personaalne treeningkava",
            "Tugi programmi vältel",
            "Toitumis- ja elustiilisoovitused",
            "Põhjalik progressi analüüs",
        ],
    ),
}

UPGRADE_PROMPTS: list[UpgradePrompt] = [
    UpgradePrompt(
        id="trial_to_guided",
        trigger="trial_ending",
        title="Tahad nädalaseid tagasisideid?",
        description="Upgradeeri Guided plaanile ja saa personaalseid soovitusi eksperdilt.",
        cta_text="Upgradeeri Guided plaanile",
        target_plan="guided",
        show_after_days=5,
    ),
    UpgradePrompt(
        id="program_completion_transform",
        trigger="program_completion",
        title="Tahad personaalset plaani?",
        description="Saa 1:1 transformatsioon pakett koos 5 privaatse konsultatsiooniga.",
        cta_text="Alusta 1:1 transformatsiooni",
        target_plan="transformation",
    ),
    UpgradePrompt(
        id="weekly_guided_prompt",
        trigger="weekly_check",
        title="Guided plaan annab sinule rohkem",
        description="Saada nädalaseid kontrollid ja prioriteetset tuge.",
        cta_text="Upgradeeri Guided plaanile",
        target_plan="guided",
    ),
]


def tier_from_plan(plan_id: str) -> Tier:
    plan = PLANS.get(plan_id)
    return plan.tier if plan else Tier.FREE


def plan_from_tier(tier: Tier | str) -> Optional[Plan]:
    tier = Tier(tier)
    return next((p for p in PLANS.values() if p.tier == tier), None)


def plan_for_price(price_id: Optional[str]) -> Optional[Plan]:
    if not price_id:
        return None
    return next((p for p in PLANS.values() if p.price_id == price_id), None)


def checkout_mode(price_id: str) -> str:
    """``subscription`` for recurring plans, ``payment`` for everything else."""
    plan = plan_for_price(price_id)
    if plan and plan.interval in (Interval.MONTH, Interval.YEAR):
        return "subscription"
    return "payment"


def grants_for_price(price_id: Optional[str], now: Optional[datetime] = None) -> list[Grant]:
    """Entitlements a completed purchase of ``price_id`` unlocks.

    Raises:
        PaymentError: The price id is not part of the catalog.
    """
    now = now or utcnow()
    if price_id == SELF_GUIDED_PRICE_ID:
        return [Grant(product=Product.STATIC)]
    if price_id == GUIDED_PRICE_ID:
        return [Grant(product=Product.STATIC), Grant(product=Product.PT)]
    if price_id == TRANSFORMATION_PRICE_ID:
        expires_at = now + timedelta(days=TRANSFORMATION_ACCESS_DAYS)
        return [
            Grant(product=Product.STATIC, expires_at=expires_at),
            Grant(product=Product.PT, expires_at=expires_at),
        ]
    raise PaymentError(
        f"Unknown price ID: {price_id}. No entitlements granted.",
        details={"price_id": price_id},
    )


def upgrade_prompt_for(trigger: str, trial: Optional[TrialStatus] = None) -> Optional[UpgradePrompt]:
    """Pick the prompt for ``trigger``.

    ``trial_ending`` prompts only show once the trial has run for at least
    ``show_after_days`` days.
    """
    for prompt in UPGRADE_PROMPTS:
        if prompt.trigger != trigger:
            continue
        if prompt.show_after_days is not None:
            if trial is None or not trial.is_on_trial or trial.days_remaining is None:
                return None
            days_elapsed = TRIAL_DAYS - trial.days_remaining
            if days_elapsed < prompt.show_after_days:
                return None
        return prompt
    return None


class UpgradePromptDecision(BaseModel):
    """Whether the client should show an upgrade prompt, and how urgently."""

    show: bool
    prompt: Optional[UpgradePrompt] = None
    trigger: str
    days_remaining: Optional[int] = None
    is_warning_period: bool = False
    is_urgent: bool = False


def upgrade_prompt_decision(trigger: str, trial: Optional[TrialStatus] = None) -> UpgradePromptDecision:
    """``upgrade_prompt_for`` plus the trial countdown flags the client styles the prompt with."""
    prompt = upgrade_prompt_for(trigger, trial)
    trial = trial or TrialStatus()
    return UpgradePromptDecision(
        show=prompt is not None,
        prompt=prompt,
        trigger=trigger,
        days_remaining=trial.days_remaining,
        is_warning_period=trial.is_warning_period,
        is_urgent=trial.is_urgent,
    )
