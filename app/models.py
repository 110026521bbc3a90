"""SQLAlchemy database models."""
from sqlalchemy import Column, String, Boolean, DateTime, Text, Index
from sqlalchemy.sql import func
from app.database import Base


class ShopSession(Base):
    """Platform session for a shop (offline sessions use id ``offline_<shop>``)."""
    __tablename__ = "shop_sessions"

    id = Column(String(255), primary_key=True)
    shop = Column(String(255), nullable=False, index=True)
    state = Column(String(255), default="")
    is_online = Column(Boolean, default=False)
    scope = Column(Text)
    expires = Column(DateTime(timezone=True))
    access_token = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index('idx_shop_session_shop_online', 'shop', 'is_online'),
    )
