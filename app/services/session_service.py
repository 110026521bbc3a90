"""Session service layer - stores platform sessions per shop."""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.models import ShopSession

LOG = logging.getLogger(__name__)


def offline_session_id(shop: str) -> str:
    return f"offline_{shop}"


class SessionService:
    """Service for managing stored shop sessions."""

    def get_session(self, db: Session, session_id: str) -> Optional[ShopSession]:
        return db.query(ShopSession).filter(ShopSession.id == session_id).first()

    def get_offline_session(self, db: Session, shop: str) -> Optional[ShopSession]:
        """Get the offline (app-level) session for a shop."""
        return self.get_session(db, offline_session_id(shop))

    def store_session(
        self,
        db: Session,
        shop: str,
        access_token: str,
        scope: Optional[str] = None,
        state: str = "",
        is_online: bool = False,
        session_id: Optional[str] = None
    ) -> ShopSession:
        """Create or update a session."""
        session_id = session_id or offline_session_id(shop)
        record = self.get_session(db, session_id)

        if record:
            record.access_token = access_token
            record.scope = scope
            record.state = state
            record.is_online = is_online
        else:
            record = ShopSession(
                id=session_id,
                shop=shop,
                access_token=access_token,
                scope=scope,
                state=state,
                is_online=is_online
            )
            db.add(record)

        db.commit()
        db.refresh(record)
        return record

    def delete_sessions_for_shop(self, db: Session, shop: str) -> int:
        """Delete every session stored for a shop. Returns the count removed."""
        deleted = db.query(ShopSession).filter(ShopSession.shop == shop).delete()
        db.commit()
        LOG.info("Deleted %d session(s) for %s", deleted, shop)
        return deleted

    def update_scope(self, db: Session, shop: str, scope: str) -> bool:
        """Update the granted scope on the shop's offline session."""
        record = self.get_offline_session(db, shop)
        if not record:
            return False
        record.scope = scope
        db.commit()
        return True


# Singleton instance
session_service = SessionService()
