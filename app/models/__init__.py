from .user import User, UserRole
from .client import Client
from .project import Project
from .delivery_note import DeliveryNote, DeliveryNoteFormat

__all__ = [
    "User", "UserRole",
    "Client",
    "Project",
    "DeliveryNote", "DeliveryNoteFormat",
]
