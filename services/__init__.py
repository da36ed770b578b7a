from .user_service import register_user, login_user, logout_user, ensure_default_users

# Avoid importing the network-bound adapter (ai_service) at package import
# time. Import submodules directly where needed instead.

__all__ = ["register_user", "login_user", "logout_user", "ensure_default_users"]
