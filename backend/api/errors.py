from contextlib import contextmanager
from fastapi import HTTPException

from domain.errors import DuplicateSongError, LimitExceededError, NotFoundError

@contextmanager
def http_errors():
    """アプリケーション層の例外を HTTP ステータスへ変換する"""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (DuplicateSongError, LimitExceededError) as e:
        raise HTTPException(status_code=409, detail=e.message)
