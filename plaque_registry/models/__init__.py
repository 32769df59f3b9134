from plaque_registry.models.plaque import Plaque, PlaqueStatus
from plaque_registry.models.user import User

__all__ = ["Plaque", "PlaqueStatus", "User"]
