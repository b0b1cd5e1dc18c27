from typing import Any, Dict, List

from sqlmodel import Session

from domain.constants import DEFAULT_SET_NAME, SetStatus
from domain.errors import NotFoundError
from domain.models.board import new_instance_id
from domain.models.gig import Band, Gig
from domain.services.derived_views import SetSummary, summarize_sets
from infra.repositories.gig_repository import BandRepository, GigRepository
from infra.repositories.setlist_repository import SetlistRepository
from api.schemas.common import BandCreate, GigCreate, GigUpdate
from app.services.board_registry import registry
from utils.logger import get_logger

logger = get_logger(__name__)

class BandAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = BandRepository(session)

    def get_bands(self) -> List[Band]:
        return self.repository.find_all()

    def create_band(self, data: BandCreate) -> Band:
        return self.repository.create(Band(name=data.name))

class GigAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = GigRepository(session)
        self.band_repository = BandRepository(session)
        self.setlist_repository = SetlistRepository(session)

    def get_gigs(self, band_id: str) -> List[Dict[str, Any]]:
        if self.band_repository.get_by_id(band_id) is None:
            raise NotFoundError(f"Band not found: {band_id}")

        gigs = []
        for gig in self.repository.find_by_band(band_id):
            g_dict = gig.model_dump()
            g_dict["sets"] = [s.model_dump() for s in self._set_summaries(gig.id)]
            gigs.append(g_dict)
        return gigs

    def create_gig(self, band_id: str, data: GigCreate) -> Gig:
        """ギグを作成し、既定の "Set 1" を用意する"""
        if self.band_repository.get_by_id(band_id) is None:
            raise NotFoundError(f"Band not found: {band_id}")

        gig = self.repository.save(Gig(band_id=band_id, **data.model_dump(mode="json")))
        self.setlist_repository.save_set(
            new_instance_id(),
            band_id,
            gig.id,
            DEFAULT_SET_NAME.format(number=1),
            SetStatus.DRAFT.value,
            0,
        )
        logger.info(f"Created gig {gig.id} ({gig.name}) for band {band_id}")
        return gig

    def update_gig(self, gig_id: str, data: GigUpdate) -> Gig:
        gig = self._require_gig(gig_id)
        for key, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(gig, key, value)
        return self.repository.save(gig)

    def delete_gig(self, gig_id: str) -> bool:
        gig = self._require_gig(gig_id)
        with registry.lock:
            registry.evict(gig_id)
            self.setlist_repository.delete_by_gig(gig_id)
            self.repository.delete(gig)
        return True

    def _set_summaries(self, gig_id: str) -> List[SetSummary]:
        """
        セットごとの曲数・合計時間。読み込み済みのボードがあれば未保存の変更も含めてそちらを使い、
        なければ DB から集計する (一覧表示のためにボードを読み込まない)。
        """
        entry = registry.peek(gig_id)
        if entry is not None:
            return summarize_sets(entry.board)
        summaries = []
        for setlist in self.setlist_repository.find_by_gig(gig_id):
            songs = [song for _, song in self.setlist_repository.get_set_songs(setlist.id)]
            summaries.append(SetSummary(
                set_id=setlist.id,
                name=setlist.name,
                song_count=len(songs),
                duration_seconds=sum(s.duration_seconds or 0 for s in songs),
            ))
        return summaries

    def _require_gig(self, gig_id: str) -> Gig:
        gig = self.repository.get_by_id(gig_id)
        if gig is None:
            raise NotFoundError(f"Gig not found: {gig_id}")
        return gig
