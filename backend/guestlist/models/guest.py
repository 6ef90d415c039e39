from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from guestlist.db.base import Base, BaseModel

class Guest(Base, BaseModel):
    __tablename__ = "guests"

    gig_id = Column(Integer, ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    # Lowercased on public signup; admin edits store as given
    email = Column(String, nullable=False, index=True)
    quantity = Column(Integer, default=1, nullable=False)

    gig = relationship("Gig", back_populates="guests")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="check_guest_quantity_positive"),
    )

    def __repr__(self):
        return f"<Guest {self.name} ({self.email}) x{self.quantity}>"
