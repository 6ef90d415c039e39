from sqlalchemy import Column, String, DateTime

from guestlist.db.base import Base, utcnow

ADMIN_ID = "admin"

class AdminConfig(Base):
    """Singleton row holding the organizer's credentials"""
    __tablename__ = "admin_config"

    id = Column(String, primary_key=True, default=ADMIN_ID)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)  # salt:hash
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<AdminConfig {self.email}>"
