from typing import Optional
from sqlmodel import Session, select

from domain.constants import DEFAULT_SET_NAME, PracticeStatus, SetStatus
from domain.models.board import new_instance_id
from models import Band, Gig, Setlist, Song
from utils.logger import get_logger

logger = get_logger(__name__)

DEMO_BAND_NAME = "Demo Band"

DEMO_SONGS = [
    {"title": "Bohemian Rhapsody", "artist": "Queen", "duration_seconds": 355, "rating": 5, "played_live": True},
    {"title": "Hotel California", "artist": "Eagles", "duration_seconds": 390, "rating": 4, "played_live": True},
    {"title": "Sweet Child O' Mine", "artist": "Guns N' Roses", "duration_seconds": 356, "rating": 5},
    {"title": "Stairway to Heaven", "artist": "Led Zeppelin", "duration_seconds": 482, "rating": 3},
    {"title": "Smells Like Teen Spirit", "artist": "Nirvana", "duration_seconds": 301, "rating": 4, "played_live": True},
    {"title": "Blister in the Sun", "artist": "Violent Femmes", "duration_seconds": 145, "rating": 4},
    {"title": "Born to be Wild", "artist": "Steppenwolf", "duration_seconds": 210, "rating": 3},
]

def seed_demo_data(session: Session) -> Optional[Band]:
    """デモ用のバンド・ライブラリ・ギグを投入する (既に存在する場合は何もしない)"""
    existing = session.exec(select(Band).where(Band.name == DEMO_BAND_NAME)).first()
    if existing:
        logger.info("Demo band already exists. Skipping seed.")
        return None

    band = Band(name=DEMO_BAND_NAME)
    session.add(band)
    session.commit()
    session.refresh(band)

    for data in DEMO_SONGS:
        practice = PracticeStatus.READY if data.get("played_live") else PracticeStatus.PRACTICE
        session.add(Song(band_id=band.id, practice_status=practice.value, **data))

    gig = Gig(band_id=band.id, name="Demo Gig")
    session.add(gig)
    session.commit()
    session.refresh(gig)

    session.add(Setlist(
        id=new_instance_id(),
        band_id=band.id,
        gig_id=gig.id,
        name=DEFAULT_SET_NAME.format(number=1),
        status=SetStatus.DRAFT.value,
        order_index=0,
    ))
    session.commit()

    logger.info(f"Seeded demo band {band.id} with {len(DEMO_SONGS)} songs")
    return band
