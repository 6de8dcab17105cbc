"""
Services routes — GET /services (gated)

Static catalogue of the extra services offered alongside a stay.
"""
from fastapi import APIRouter, Request

from planmystay.templating import render

router = APIRouter(tags=["services"])

SERVICES = [
    {"name": "Airport transfer", "description": "Pick-up and drop-off arranged with your host."},
    {"name": "Local guide", "description": "Half-day walking tours with a resident guide."},
    {"name": "Housekeeping", "description": "Daily cleaning for stays of three nights or more."},
    {"name": "Travel insurance", "description": "Cover for cancellations and lost luggage."},
]


@router.get("")
async def index(request: Request):
    return render(request, "services/index.html", {"services": SERVICES})
