from staydesk.api.routes.properties import router as properties_router
from staydesk.api.routes.reservations import router as reservations_router
from staydesk.api.routes.contracts import router as contracts_router
from staydesk.api.routes.concierges import router as concierges_router
from staydesk.api.routes.revenues import router as revenues_router
from staydesk.api.routes.ical import router as ical_router

__all__ = [
    "properties_router",
    "reservations_router",
    "contracts_router",
    "concierges_router",
    "revenues_router",
    "ical_router",
]
