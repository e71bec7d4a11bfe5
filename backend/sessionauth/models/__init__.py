from sessionauth.models.user import User

__all__ = ["User"]
