# api/routes_metro.py
from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_container
from core.container import ServiceContainer
from core.exceptions import MetroAPIError
from core.response import ok
from tools.metro import MetroAPI, arrival_sort_key, format_arrival

router = APIRouter()


def require_metro(c: ServiceContainer = Depends(get_container)) -> MetroAPI:
    if c.metro is None:
        raise HTTPException(status_code=503, detail="WMATA_API_KEY is not configured")
    return c.metro


@router.get("/lines")
async def metro_lines(metro: MetroAPI = Depends(require_metro)):
    """All Metro rail lines."""
    try:
        lines = await metro.get_lines()
    except MetroAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ok([line.model_dump() for line in lines])


@router.get("/predictions/{station_codes}")
async def metro_predictions(station_codes: str, metro: MetroAPI = Depends(require_metro)):
    """
    Real-time arrivals for one or more stations ("A01", "A01,C01", "All"),
    soonest first, each with a display string ("Arriving", "3 min", ...).
    """
    try:
        trains = await metro.get_predictions(station_codes)
    except MetroAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    trains = sorted(trains, key=arrival_sort_key)
    out = []
    for t in trains:
        item = t.model_dump()
        item["arrival"] = format_arrival(t.minutes)
        out.append(item)
    return ok(out)
