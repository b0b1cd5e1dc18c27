import logging
import os
import sys
from logging.handlers import RotatingFileHandler

# SETLISTFLOW_LOG_DIR は config.settings.setup_environment() (server.py経由) で設定される
# 未設定なら backend/logs を使う (開発環境)
if "SETLISTFLOW_LOG_DIR" in os.environ:
    LOG_DIR = os.environ["SETLISTFLOW_LOG_DIR"]
else:
    LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs")

LOG_FILE_NAME = "setlistflow.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

os.makedirs(LOG_DIR, exist_ok=True)

def _level() -> int:
    level = logging.getLevelName(os.environ.get("SETLISTFLOW_LOG_LEVEL", "INFO").upper())
    # 不明なレベル名は "Level X" という文字列が返る
    return level if isinstance(level, int) else logging.INFO

def get_logger(name: str) -> logging.Logger:
    """
    ファイル出力 (ローテーション付き) とコンソール出力を併用するロガーを取得する。
    同じ name で何度呼んでもハンドラは一度だけ追加される。
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _level()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    try:
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE_NAME),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
    except OSError as e:
        # 書き込めないディレクトリの場合はコンソールのみ
        print(f"Failed to set up file logging: {e}", file=sys.stderr)
    else:
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    return logger

class GigLogAdapter(logging.LoggerAdapter):
    """メッセージ先頭に [gig <id>] を付ける"""

    def process(self, msg, kwargs):
        return f"[gig {self.extra['gig_id']}] {msg}", kwargs

def gig_logger(logger: logging.Logger, gig_id: str) -> GigLogAdapter:
    return GigLogAdapter(logger, {"gig_id": gig_id})
