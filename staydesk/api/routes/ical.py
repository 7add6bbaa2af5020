"""
Calendar Feed Routes

  POST /api/ical/fetch                      – proxy one iCal feed (body: {url})
  POST /api/ical/property/{property_id}/sync – fetch every feed of a property
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from staydesk.database import get_db
from staydesk.schemas.property import ICalFetchRequest, ICalSyncOut
from staydesk.services import ical_service

router = APIRouter(tags=["iCal"])
logger = logging.getLogger(__name__)


@router.post("/fetch")
async def fetch_ical(payload: ICalFetchRequest):
    body = await ical_service.fetch_calendar(payload.url)
    return Response(content=body, media_type="text/calendar")


def property_feeds(property_id: UUID, db: Session = Depends(get_db)) -> List[str]:
    # Plain def: FastAPI runs it in the threadpool
    return ical_service.property_feed_urls(db, property_id)


@router.post("/property/{property_id}/sync", response_model=ICalSyncOut)
async def sync_property(property_id: UUID, urls: List[str] = Depends(property_feeds)):
    return await ical_service.sync_property_calendars(property_id, urls)
