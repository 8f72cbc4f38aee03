"""Creation-time quota checks and list-time lock computation."""

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import or_

from ..models.profile import Profile
from ..utils.plan_limits import PLAN_LIMITS

DEFAULT_WARNING_THRESHOLD = 2


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    remaining: int | None          # None for unlimited plans
    warning: str | None = None
    upgrade_required: bool = False
    message: str | None = None

    def to_dict(self):
        return {
            "allowed": self.allowed,
            "remaining": self.remaining,
            "warning": self.warning,
            "upgrade_required": self.upgrade_required,
            "message": self.message,
        }


def _get_limits_for_profile(profile):
    return PLAN_LIMITS.get(profile.subscription_status or "free", PLAN_LIMITS["free"])


def _warning_threshold() -> int:
    try:
        return int(current_app.config.get("QUOTA_WARNING_THRESHOLD", DEFAULT_WARNING_THRESHOLD))
    except RuntimeError:
        # outside an app context
        return DEFAULT_WARNING_THRESHOLD


def blocked_decision(profile) -> QuotaDecision:
    return QuotaDecision(
        allowed=False,
        remaining=0,
        upgrade_required=True,
        message=f"You have used all {profile.qr_quota} QR codes on the Free plan. "
                "Upgrade or buy more QR codes to continue.",
    )


def check_can_create(profile) -> QuotaDecision:
    """Decide whether ``profile`` may create one more QR code.

    Paid plans are never blocked. Free accounts are blocked once
    ``qr_used`` reaches ``qr_quota`` and warned when two or fewer remain.
    """
    limits = _get_limits_for_profile(profile)
    if not profile.is_free_tier and limits.get("qr_quota") is None:
        return QuotaDecision(allowed=True, remaining=None)

    remaining = (profile.qr_quota or 0) - (profile.qr_used or 0)

    if remaining <= 0:
        return blocked_decision(profile)

    warning = None
    if remaining <= _warning_threshold():
        warning = f"Only {remaining} QR code{'s' if remaining != 1 else ''} left on your plan."

    return QuotaDecision(allowed=True, remaining=remaining, warning=warning)


def increment_usage(profile_id: str) -> bool:
    """Atomically bump ``qr_used`` inside the caller's transaction.

    Free accounts are only bumped while ``qr_used < qr_quota``, so two
    concurrent creates cannot both take the last slot. Returns False when
    no row was updated.
    """
    claimed = Profile.query.filter(
        Profile.id == profile_id,
        or_(Profile.subscription_status != "free", Profile.qr_used < Profile.qr_quota),
    ).update({"qr_used": Profile.qr_used + 1}, synchronize_session=False)
    return claimed == 1


def add_purchased_quota(profile_id: str, quantity: int) -> None:
    Profile.query.filter_by(id=profile_id).update({"qr_quota": Profile.qr_quota + quantity})


def compute_locked(codes, quota: int, is_free_tier: bool) -> set:
    """Return the ids of codes hidden behind the upgrade overlay.

    Free accounts holding more than ``quota`` codes get their oldest excess
    codes locked; the ``quota`` newest stay visible. Locking is a dashboard
    concern only, the redirect endpoint ignores it.
    """
    codes = list(codes)
    if not is_free_tier or quota is None or len(codes) <= quota:
        return set()

    ordered = sorted(codes, key=lambda c: c.created_at)
    excess = len(ordered) - max(quota, 0)
    return {c.id for c in ordered[:excess]}
