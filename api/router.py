from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, Field

from core.models import FireAlertSession, IngestResult, SensorReading, SpreadPrediction, WindSample
from core.monitoring_service import FireMonitoringService, build_default_service
from .validation import validate_reading_input

router = APIRouter()


class PredictionRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    wind: WindSample
    fire_intensity: float = Field(..., ge=0, le=100)


def get_service() -> FireMonitoringService:
    return build_default_service()


@router.post("/readings", response_model=IngestResult)
def ingest_reading(
    record: Dict[str, Any] = Body(...),
    service: FireMonitoringService = Depends(get_service),
):
    # Validate input data
    validate_reading_input(record)

    # Normalize, deduplicate and update sessions
    return service.ingest(record)


@router.get("/sessions/active", response_model=List[FireAlertSession])
def active_sessions(service: FireMonitoringService = Depends(get_service)):
    return service.active_sessions()


@router.get("/sessions/completed", response_model=List[FireAlertSession])
def completed_sessions(service: FireMonitoringService = Depends(get_service)):
    return service.completed_sessions()


@router.get("/devices/{device_id}/readings", response_model=List[SensorReading])
def recent_readings(device_id: str, service: FireMonitoringService = Depends(get_service)):
    return service.recent_readings(device_id)


@router.get("/devices/{device_id}/affected-areas", response_model=SpreadPrediction)
def affected_areas(device_id: str, service: FireMonitoringService = Depends(get_service)):
    try:
        return service.predict_affected_areas(device_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/predict", response_model=SpreadPrediction)
def predict(request: PredictionRequest, service: FireMonitoringService = Depends(get_service)):
    return service.predict(request.latitude, request.longitude, request.wind, request.fire_intensity)


@router.get("/health")
def health():
    return {"status": "ok"}
