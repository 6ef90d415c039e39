from sqlalchemy import Column, String, Boolean, Integer, Date, DateTime
from sqlalchemy.orm import relationship

from guestlist.db.base import Base, BaseModel

class Gig(Base, BaseModel):
    __tablename__ = "gigs"

    slug = Column(String(32), unique=True, index=True, nullable=False)
    date = Column(Date, nullable=False, index=True)
    dj_name = Column(String, nullable=False)
    venue_name = Column(String, nullable=True)

    # Capacity (guest_cap None = unlimited)
    guest_cap = Column(Integer, nullable=True)
    max_per_signup = Column(Integer, default=10, nullable=False)
    is_closed = Column(Boolean, default=False, nullable=False)

    # Watermark for "new since last export"
    last_exported_at = Column(DateTime, nullable=True)

    guests = relationship(
        "Guest",
        back_populates="gig",
        cascade="all, delete-orphan",
        order_by="Guest.created_at",
    )

    def __repr__(self):
        return f"<Gig {self.slug} ({self.dj_name} {self.date})>"
