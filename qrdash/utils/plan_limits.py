# utils/plan_limits.py
# qr_quota: None means unlimited
PLAN_LIMITS = {
    "free": {
        "qr_quota": 5,           # lifetime codes, plus purchased add-ons
        "analytics": "basic",
        "full_customization": False,
    },
    "monthly": {
        "qr_quota": None,
        "analytics": "advanced",
        "full_customization": True,
    },
    "yearly": {
        "qr_quota": None,
        "analytics": "advanced",
        "full_customization": True,
    },
}

PAID_PLANS = ("monthly", "yearly")
