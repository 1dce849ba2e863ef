from .dashboard_views import commission_stats, dashboard_summary
from .settings_views import (
    budget_tier_detail,
    budget_tiers,
    parish_detail,
    parishes,
    system_settings,
)
from .user_views import update_user, users

__all__ = [
    "dashboard_summary",
    "commission_stats",
    "system_settings",
    "parishes",
    "parish_detail",
    "budget_tiers",
    "budget_tier_detail",
    "users",
    "update_user",
]
