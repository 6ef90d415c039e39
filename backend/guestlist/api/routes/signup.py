"""Public guest list endpoints: no session required."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from guestlist.db.session import get_db
from guestlist.schemas import GigPublic, GuestResponse, GuestSignup
from guestlist.services import gig_lifecycle
from guestlist.services.capacity import admit_guest

router = APIRouter()


@router.get("/gigs/{slug}", response_model=GigPublic)
def get_gig(slug: str, db: Session = Depends(get_db)):
    """Gig details with remaining capacity for the signup page"""
    gig = gig_lifecycle.get_gig(db, slug)
    return gig_lifecycle.public_view(db, gig)


@router.post("/gigs/{slug}/guests", response_model=GuestResponse, status_code=status.HTTP_201_CREATED)
def sign_up(slug: str, payload: GuestSignup, db: Session = Depends(get_db)):
    """Add a guest if the list is open and has room (see services.capacity)"""
    return admit_guest(db, slug, payload.name, payload.email, payload.quantity)
