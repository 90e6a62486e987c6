"""
Place search API routes.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from domain.models import NormalizedPrediction
from services.geocode_query import get_default_geocode_service

router = APIRouter()
logger = logging.getLogger(__name__)


class PredictionResponse(BaseModel):
    id: str
    full_address: str
    primary_label: str
    secondary_label: str = ""


class SearchResponse(BaseModel):
    query: str
    predictions: List[PredictionResponse]


class CoordinatesResponse(BaseModel):
    latitude: float
    longitude: float


def prediction_to_response(prediction: NormalizedPrediction) -> PredictionResponse:
    return PredictionResponse(**prediction.to_dict())


@router.get("/search", response_model=SearchResponse)
async def search_places(q: str = ""):
    """Search predictions for free text. A failed search is just an empty list."""
    service = get_default_geocode_service()
    predictions = await run_in_threadpool(service.search_predictions, q)
    return SearchResponse(
        query=q,
        predictions=[prediction_to_response(p) for p in predictions],
    )


@router.get("/reverse", response_model=PredictionResponse)
async def reverse_place(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
):
    service = get_default_geocode_service()
    prediction = await run_in_threadpool(service.reverse_lookup, lat, lon)
    if prediction is None:
        raise HTTPException(status_code=404, detail="No address found for this location")
    return prediction_to_response(prediction)


@router.get("/{place_id}/coordinates", response_model=CoordinatesResponse)
async def place_coordinates(place_id: str):
    service = get_default_geocode_service()
    coords = await run_in_threadpool(service.resolve_coordinates, place_id)
    if coords is None:
        logger.debug("No coordinates for place %s", place_id)
        raise HTTPException(status_code=404, detail="Place not found")
    return CoordinatesResponse(latitude=coords.latitude, longitude=coords.longitude)
