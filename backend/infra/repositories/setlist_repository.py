from typing import List, Optional, Sequence, Tuple
from sqlmodel import Session, select
from datetime import datetime

from domain.models.setlist import Setlist, SetlistSong
from domain.models.song import Song

class SetlistRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_gig(self, gig_id: str) -> List[Setlist]:
        query = (
            select(Setlist)
            .where(Setlist.gig_id == gig_id)
            .order_by(Setlist.order_index, Setlist.created_at)
        )
        return self.session.exec(query).all()

    def get_by_id(self, setlist_id: str) -> Optional[Setlist]:
        return self.session.get(Setlist, setlist_id)

    def get_set_songs(self, setlist_id: str) -> List[Tuple[SetlistSong, Song]]:
        query = (
            select(SetlistSong, Song)
            .where(SetlistSong.setlist_id == setlist_id)
            .where(SetlistSong.song_id == Song.id)
            .order_by(SetlistSong.order_index)
        )
        return self.session.exec(query).all()

    def get_memberships(self, setlist_id: str) -> List[SetlistSong]:
        return self.session.exec(
            select(SetlistSong).where(SetlistSong.setlist_id == setlist_id)
        ).all()

    def count_song_usage(self, song_id: str) -> int:
        return len(self.session.exec(select(SetlistSong.id).where(SetlistSong.song_id == song_id)).all())

    def save_set(self, set_id: str, band_id: str, gig_id: str, name: str, status: str, order_index: int) -> Setlist:
        """
        セット行の upsert。DuckDB の UPDATE 制約を避けるため get してから属性を書き換える。
        """
        setlist = self.get_by_id(set_id)
        if setlist is None:
            setlist = Setlist(id=set_id, band_id=band_id, gig_id=gig_id, name=name, status=status, order_index=order_index)
        else:
            setlist.name = name
            setlist.status = status
            setlist.order_index = order_index
            setlist.updated_at = datetime.now()
        self.session.add(setlist)
        self.session.commit()
        self.session.refresh(setlist)
        return setlist

    def persist_order(self, setlist_id: str, rows: Sequence[Tuple[str, str, str]]):
        """
        rows: (instance_id, song_id, notes) をメモリ上の順序のまま受け取る。
        instance_id をキーに upsert し、order_index を位置で書き直す。
        ここに含まれない既存メンバーシップは他のセットへ移動したか削除されたもの。
        """
        keep = set()
        for position, (instance_id, song_id, notes) in enumerate(rows):
            keep.add(instance_id)
            row = self.session.get(SetlistSong, instance_id)
            if row is None:
                row = SetlistSong(id=instance_id, setlist_id=setlist_id, song_id=song_id, order_index=position, notes=notes)
            else:
                row.setlist_id = setlist_id
                row.order_index = position
                row.notes = notes
            self.session.add(row)

        for existing in self.get_memberships(setlist_id):
            if existing.id not in keep:
                self.session.delete(existing)
        self.session.commit()

    def delete_membership(self, instance_id: str) -> bool:
        row = self.session.get(SetlistSong, instance_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def persist_set_sequence(self, ordered_set_ids: Sequence[str]):
        for position, set_id in enumerate(ordered_set_ids):
            setlist = self.get_by_id(set_id)
            if setlist is None or setlist.order_index == position:
                continue
            setlist.order_index = position
            setlist.updated_at = datetime.now()
            self.session.add(setlist)
        self.session.commit()

    def delete_set(self, setlist_id: str) -> bool:
        setlist = self.get_by_id(setlist_id)
        for row in self.get_memberships(setlist_id):
            self.session.delete(row)
        if setlist is not None:
            self.session.delete(setlist)
        self.session.commit()
        return setlist is not None

    def delete_by_gig(self, gig_id: str):
        for setlist in self.find_by_gig(gig_id):
            for row in self.get_memberships(setlist.id):
                self.session.delete(row)
            self.session.delete(setlist)
        self.session.commit()
