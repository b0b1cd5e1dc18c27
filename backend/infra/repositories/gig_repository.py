from typing import List, Optional
from sqlmodel import Session, select, desc

from domain.models.gig import Band, Gig

class BandRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> List[Band]:
        return self.session.exec(select(Band).order_by(Band.created_at)).all()

    def get_by_id(self, band_id: str) -> Optional[Band]:
        return self.session.get(Band, band_id)

    def create(self, band: Band) -> Band:
        self.session.add(band)
        self.session.commit()
        self.session.refresh(band)
        return band

class GigRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_band(self, band_id: str) -> List[Gig]:
        query = select(Gig).where(Gig.band_id == band_id).order_by(desc(Gig.date), desc(Gig.created_at))
        return self.session.exec(query).all()

    def get_by_id(self, gig_id: str) -> Optional[Gig]:
        return self.session.get(Gig, gig_id)

    def save(self, gig: Gig) -> Gig:
        self.session.add(gig)
        self.session.commit()
        self.session.refresh(gig)
        return gig

    def delete(self, gig: Gig):
        self.session.delete(gig)
        self.session.commit()
