"""Subscription tier catalog."""

from __future__ import annotations

from dataclasses import dataclass, field

from formdesk.services.exceptions import UnknownTier

# Enterprise stores a large sentinel instead of NULL so the admission check
# stays a plain integer comparison.
UNLIMITED_SUBMISSIONS = 999_999


@dataclass(frozen=True, slots=True)
class TierDefinition:
    name: str
    display_name: str
    monthly_submission_limit: int
    features: tuple[str, ...] = field(default_factory=tuple)

    @property
    def unlimited(self) -> bool:
        return self.monthly_submission_limit >= UNLIMITED_SUBMISSIONS


TIERS: dict[str, TierDefinition] = {
    "free": TierDefinition(
        name="free",
        display_name="Free",
        monthly_submission_limit=25,
        features=(
            "25 submissions/month",
            "Basic analytics",
            "Email notifications",
            "48-hour support",
        ),
    ),
    "pro": TierDefinition(
        name="pro",
        display_name="Pro",
        monthly_submission_limit=100,
        features=(
            "100 submissions/month",
            "Advanced analytics",
            "Priority email notifications",
            "24-hour support",
            "Custom branding",
        ),
    ),
    "enterprise": TierDefinition(
        name="enterprise",
        display_name="Enterprise",
        monthly_submission_limit=UNLIMITED_SUBMISSIONS,
        features=(
            "Unlimited submissions",
            "Full analytics suite",
            "Real-time notifications",
            "Dedicated support",
            "Custom branding",
            "API access",
        ),
    ),
}

DEFAULT_TIER = "free"


def get_tier(name: str) -> TierDefinition:
    try:
        return TIERS[name.lower()]
    except KeyError:
        raise UnknownTier(name) from None


__all__ = ["DEFAULT_TIER", "TIERS", "TierDefinition", "UNLIMITED_SUBMISSIONS", "get_tier"]
