from fastapi import APIRouter, Depends
from sqlmodel import Session

from infra.database.connection import get_session
from api.errors import http_errors
from api.schemas.common import BandCreate, GigCreate, GigUpdate
from app.services.gig_app_service import BandAppService, GigAppService

router = APIRouter()

@router.get("/api/bands")
def get_bands(session: Session = Depends(get_session)):
    service = BandAppService(session)
    return service.get_bands()

@router.post("/api/bands")
def create_band(band: BandCreate, session: Session = Depends(get_session)):
    service = BandAppService(session)
    return service.create_band(band)

@router.get("/api/bands/{band_id}/gigs")
def get_gigs(band_id: str, session: Session = Depends(get_session)):
    service = GigAppService(session)
    with http_errors():
        return service.get_gigs(band_id)

@router.post("/api/bands/{band_id}/gigs")
def create_gig(band_id: str, gig: GigCreate, session: Session = Depends(get_session)):
    service = GigAppService(session)
    with http_errors():
        return service.create_gig(band_id, gig)

@router.put("/api/gigs/{gig_id}")
def update_gig(gig_id: str, gig: GigUpdate, session: Session = Depends(get_session)):
    service = GigAppService(session)
    with http_errors():
        return service.update_gig(gig_id, gig)

@router.delete("/api/gigs/{gig_id}")
def delete_gig(gig_id: str, session: Session = Depends(get_session)):
    service = GigAppService(session)
    with http_errors():
        service.delete_gig(gig_id)
    return {"ok": True}
