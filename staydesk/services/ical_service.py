"""
Calendar Feed Service
Fetches the iCal feeds attached to a property (Airbnb, Booking.com...).
Events are handed back untouched; nothing here turns them into reservations.
"""
import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from sqlalchemy.orm import Session

from staydesk.core.config import settings
from staydesk.core.exceptions import BookingError, ExternalServiceError, NotFoundError
from staydesk.models.property import Property

logger = logging.getLogger(__name__)


async def fetch_calendar(url: str) -> str:
    """
    Download one calendar feed.

    Args:
        url: Public iCal export URL

    Returns:
        The raw text/calendar body
    """
    if not url:
        raise BookingError("URL is required")

    headers = {
        "User-Agent": settings.ICAL_USER_AGENT,
        "Accept": "text/calendar",
    }
    try:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.get(url, headers=headers, timeout=settings.ICAL_FETCH_TIMEOUT)
            response.raise_for_status()
            return response.text

    except httpx.HTTPError as e:
        logger.error(f"[ICAL] Fetch failed for {url}: {e}")
        raise ExternalServiceError("Failed to fetch iCal", extra={"details": str(e)})


def feed_urls(prop: Property) -> List[str]:
    links = prop.ical_links or []
    if not isinstance(links, list):
        return []
    urls = []
    for link in links:
        url = link.get("url") if isinstance(link, dict) else link
        if url:
            urls.append(url)
    return urls


def property_feed_urls(db: Session, property_id: uuid.UUID) -> List[str]:
    """Feed URLs configured on the property; runs before any fetch starts."""
    prop = db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property")
    return feed_urls(prop)


async def sync_property_calendars(
    property_id: uuid.UUID,
    urls: List[str],
    fetcher: Optional[Callable[[str], Awaitable[str]]] = None,
) -> Dict[str, Any]:
    """Fetch every feed of the property; one failing feed does not stop the others."""
    if not urls:
        return {"message": "No iCal links found for this property", "results": None}

    fetch = fetcher or fetch_calendar
    outcomes = await asyncio.gather(*(fetch(url) for url in urls), return_exceptions=True)

    failed = [url for url, outcome in zip(urls, outcomes) if isinstance(outcome, Exception)]
    for url in failed:
        logger.warning(f"[ICAL] Property {property_id} feed failed: {url}")

    results = {
        "successful": len(urls) - len(failed),
        "failed": len(failed),
        "total": len(urls),
    }
    logger.info(f"[ICAL] Synced property {property_id}: {results}")
    return {"message": "iCal synchronization completed", "results": results}
