from django.urls import path

from .views import (
    budget_tier_detail,
    budget_tiers,
    commission_stats,
    dashboard_summary,
    parish_detail,
    parishes,
    system_settings,
    update_user,
    users,
)

app_name = "dashboard"

urlpatterns = [
    path("dashboard/", dashboard_summary, name="summary"),
    path("dashboard/commission-stats/", commission_stats, name="commission-stats"),

    path("settings/system/", system_settings, name="system-settings"),
    path("settings/parishes/", parishes, name="parishes"),
    path("settings/parishes/<int:parish_id>/", parish_detail, name="parish-detail"),
    path("settings/budget-tiers/", budget_tiers, name="budget-tiers"),
    path("settings/budget-tiers/<int:tier_id>/", budget_tier_detail, name="budget-tier-detail"),
    path("settings/users/", users, name="users"),
    path("settings/users/<int:user_id>/", update_user, name="user-detail"),
]
