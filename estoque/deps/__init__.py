from .auth import extract_token, require_admin, require_user

__all__ = ["extract_token", "require_admin", "require_user"]
