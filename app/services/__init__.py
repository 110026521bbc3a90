# Services package
from app.services.session_service import session_service
from app.services.editor_service import editor_registry

__all__ = [
    "session_service",
    "editor_registry",
]
