from .auth_views import login_view, logout_view, me_view

__all__ = ["login_view", "logout_view", "me_view"]
