from candilib.domain.models import User

__all__ = ["User"]
