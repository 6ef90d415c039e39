from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from guestlist.core.deps import get_current_admin
from guestlist.db.session import get_db
from guestlist.schemas import GuestResponse, GuestUpdate, SuccessResponse
from guestlist.services import gig_lifecycle

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.patch("/guests/{guest_id}", response_model=GuestResponse)
def update_guest(guest_id: int, payload: GuestUpdate, db: Session = Depends(get_db)):
    """Admin edit; may exceed the gig's cap"""
    return gig_lifecycle.update_guest(db, guest_id, payload)


@router.delete("/guests/{guest_id}", response_model=SuccessResponse)
def delete_guest(guest_id: int, db: Session = Depends(get_db)):
    gig_lifecycle.delete_guest(db, guest_id)
    return SuccessResponse()
