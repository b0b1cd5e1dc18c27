import os
from pydantic_settings import BaseSettings
from pydantic import Field
import platformdirs

APP_NAME = "SetlistFlow"
APP_AUTHOR = "SetlistFlowDev"

class Settings(BaseSettings):
    # App Info
    APP_NAME: str = APP_NAME
    APP_AUTHOR: str = APP_AUTHOR
    ENV: str = "prod"

    # Paths
    # デフォルトは platformdirs を使用するが、環境変数 DB_PATH があればそれを優先する
    USER_DATA_DIR: str = Field(default_factory=lambda: platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    DB_PATH: str | None = None

    # Network
    SETLISTFLOW_PORT: int = 8001
    FRONTEND_PORT: int = 5173
    CORS_EXTRA_ORIGINS: list[str] = []

    # 起動時にデモデータを投入する (空の DB で画面を確認したい時用)
    SEED_DEMO_DATA: bool = False

    # Board rules
    MAX_SETS_PER_GIG: int = 5
    DRAG_ACTIVATION_DISTANCE: float = 8.0

    # Logging
    SETLISTFLOW_LOG_DIR: str | None = None

    class Config:
        env_file = ".env"
        extra = "ignore"

    def model_post_init(self, __context):
        # DB_PATHが未設定ならデフォルト値を設定
        if not self.DB_PATH:
            self.DB_PATH = os.path.join(self.USER_DATA_DIR, "setlistflow.duckdb")

        # ログディレクトリ
        if not self.SETLISTFLOW_LOG_DIR:
            self.SETLISTFLOW_LOG_DIR = os.path.join(self.USER_DATA_DIR, "logs")

    def cors_origins(self) -> list[str]:
        hosts = ["localhost", "127.0.0.1"]
        ports = [self.FRONTEND_PORT, self.SETLISTFLOW_PORT]
        return [f"http://{h}:{p}" for p in ports for h in hosts] + self.CORS_EXTRA_ORIGINS

    def setup_environment(self):
        """ロガーが参照する環境変数を設定する"""
        if self.SETLISTFLOW_LOG_DIR:
            os.environ["SETLISTFLOW_LOG_DIR"] = self.SETLISTFLOW_LOG_DIR

settings = Settings()
