from user_directory.models.address import Address
from user_directory.models.user import User

__all__ = ["Address", "User"]
