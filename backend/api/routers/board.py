from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session
from typing import Optional

from infra.database.connection import get_session
from api.errors import http_errors
from api.schemas.common import AddSongsRequest, MoveRequest, NoteUpdate, ReorderRequest, SetCreate, SetUpdate
from app.services.board_app_service import BoardAppService
from domain.services.drag_session import DragEnd, DragOver, DragStart

router = APIRouter()

@router.get("/api/gigs/{gig_id}/board")
def get_board(gig_id: str, session: Session = Depends(get_session)):
    """
    ライブラリ・セット・使用状況バッジ・同期状態をまとめて返す
    """
    service = BoardAppService(session)
    with http_errors():
        return service.get_board(gig_id)

# --- Sets ---

@router.post("/api/gigs/{gig_id}/sets")
def create_set(gig_id: str, background_tasks: BackgroundTasks, body: Optional[SetCreate] = None, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.create_set(gig_id, body.name if body else None)

@router.delete("/api/gigs/{gig_id}/sets")
def clear_sets(gig_id: str, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.clear_sets(gig_id)

@router.post("/api/gigs/{gig_id}/sets/reorder")
def reorder_sets(gig_id: str, body: ReorderRequest, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.reorder_sets(gig_id, body.from_index, body.to_index)

@router.patch("/api/gigs/{gig_id}/sets/{set_id}")
def update_set(gig_id: str, set_id: str, body: SetUpdate, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.update_set(gig_id, set_id, body.model_dump(exclude_unset=True))

@router.delete("/api/gigs/{gig_id}/sets/{set_id}")
def delete_set(gig_id: str, set_id: str, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.delete_set(gig_id, set_id)

@router.post("/api/gigs/{gig_id}/sets/{set_id}/duplicate")
def duplicate_set(gig_id: str, set_id: str, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.duplicate_set(gig_id, set_id)

# --- Set songs ---

@router.post("/api/gigs/{gig_id}/sets/{set_id}/songs")
def add_songs(gig_id: str, set_id: str, body: AddSongsRequest, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.add_songs(gig_id, set_id, body.song_ids, body.index)

@router.post("/api/gigs/{gig_id}/sets/{set_id}/songs/reorder")
def reorder_set_songs(gig_id: str, set_id: str, body: ReorderRequest, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.reorder_set_songs(gig_id, set_id, body.from_index, body.to_index)

@router.patch("/api/gigs/{gig_id}/sets/{set_id}/songs/{instance_id}")
def update_note(gig_id: str, set_id: str, instance_id: str, body: NoteUpdate, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.update_note(gig_id, set_id, instance_id, body.notes)

@router.delete("/api/gigs/{gig_id}/sets/{set_id}/songs/{instance_id}")
def remove_song(gig_id: str, set_id: str, instance_id: str, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.remove_song(gig_id, set_id, instance_id)

@router.post("/api/gigs/{gig_id}/move")
def move_item(gig_id: str, body: MoveRequest, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.move(gig_id, body.source_id, body.target_id, body.item_id, body.target_index)

@router.post("/api/gigs/{gig_id}/songs/{song_id}/sync")
def sync_song(gig_id: str, song_id: str, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    """ライブラリ側の編集をこのギグのセット内スナップショットへ反映する"""
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.sync_song(gig_id, song_id)

# --- Drag session ---

@router.post("/api/gigs/{gig_id}/drag/start")
def drag_start(gig_id: str, event: DragStart, session: Session = Depends(get_session)):
    service = BoardAppService(session)
    with http_errors():
        return service.drag_start(gig_id, event)

@router.post("/api/gigs/{gig_id}/drag/over")
def drag_over(gig_id: str, event: DragOver, session: Session = Depends(get_session)):
    service = BoardAppService(session)
    with http_errors():
        return service.drag_over(gig_id, event)

@router.post("/api/gigs/{gig_id}/drag/end")
def drag_end(gig_id: str, event: DragEnd, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.drag_end(gig_id, event)

@router.post("/api/gigs/{gig_id}/drag/cancel")
def drag_cancel(gig_id: str, session: Session = Depends(get_session)):
    service = BoardAppService(session)
    with http_errors():
        return service.drag_cancel(gig_id)

# --- Sync ---

@router.post("/api/gigs/{gig_id}/sync")
def retry_sync(gig_id: str, background_tasks: BackgroundTasks, session: Session = Depends(get_session)):
    """未同期・失敗したコレクションを現在のボードから書き直す"""
    service = BoardAppService(session, background_tasks)
    with http_errors():
        return service.retry_sync(gig_id)
