from typing import Dict, List, Set
from collections import Counter
from pydantic import BaseModel

from domain.models.board import Board

class SetLocation(BaseModel):
    set_name: str
    set_index: int

class SetSummary(BaseModel):
    set_id: str
    name: str
    song_count: int
    duration_seconds: int

class UsageView(BaseModel):
    used_in: Dict[str, List[SetLocation]] = {}
    duplicate_song_ids: Set[str] = set()

def compute_usage(board: Board) -> UsageView:
    """
    Song id ごとの使用セット一覧と、セット全体で複数回使われている Song id を求める。
    UIバッジ表示専用で状態は持たない。
    """
    used_in: Dict[str, List[SetLocation]] = {}
    counts: Counter = Counter()

    for set_index, set_list in enumerate(board.sets):
        for song in set_list.songs:
            locations = used_in.setdefault(song.id, [])
            if not any(loc.set_name == set_list.name and loc.set_index == set_index for loc in locations):
                locations.append(SetLocation(set_name=set_list.name, set_index=set_index))
            counts[song.id] += 1

    duplicates = {song_id for song_id, count in counts.items() if count > 1}
    return UsageView(used_in=used_in, duplicate_song_ids=duplicates)

def summarize_sets(board: Board) -> List[SetSummary]:
    return [
        SetSummary(
            set_id=s.id,
            name=s.name,
            song_count=len(s.songs),
            duration_seconds=s.duration_seconds,
        )
        for s in board.sets
    ]
