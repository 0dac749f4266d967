from shortlink.models.link import Link
from shortlink.models.refresh_token import RefreshToken
from shortlink.models.user import User

__all__ = [
    "Link",
    "RefreshToken",
    "User",
]
