import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from guestlist.core.deps import get_current_admin
from guestlist.core.errors import ValidationFailed
from guestlist.schemas import CalendarImportResponse, ImportedEvent
from guestlist.services.calendar_import import (
    filter_events_by_date_range,
    parse_calendar_file,
    sort_events_by_date,
)

router = APIRouter(dependencies=[Depends(get_current_admin)])
logger = logging.getLogger(__name__)


@router.post("/gigs/import", response_model=CalendarImportResponse)
async def import_calendar(
    file: UploadFile = File(...),
    start: Optional[dt.date] = Query(None),
    end: Optional[dt.date] = Query(None),
):
    """
    Parse an uploaded .ics or .zip calendar into candidate gigs.

    Nothing is created here; the organizer reviews the events and sends
    the chosen ones to /gigs/batch. Bad events are listed in ``errors``.
    """
    if start and end and start > end:
        raise ValidationFailed("start must not be after end")

    content = await file.read()
    result = parse_calendar_file(file.filename, content)
    events = sort_events_by_date(filter_events_by_date_range(result.events, start, end))

    return CalendarImportResponse(
        events=[
            ImportedEvent(
                id=event.id,
                dj_name=event.dj_name,
                date=event.date,
                start=event.start,
                description=event.description,
            )
            for event in events
        ],
        errors=result.errors,
    )
