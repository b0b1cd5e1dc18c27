import os
import uvicorn

if __name__ == "__main__":
    # 設定の読み込みと環境変数のセットアップ
    # ロガーが参照するログディレクトリを最初に確定させる
    from config import settings
    settings.setup_environment()

    # アプリケーションデータディレクトリの確保
    os.makedirs(settings.USER_DATA_DIR, exist_ok=True)

    from main import app

    # ポート番号を環境変数から取得（デフォルトは開発用の8001）
    port = int(os.environ.get("SETLISTFLOW_PORT", settings.SETLISTFLOW_PORT))

    print(f"Starting SetlistFlow Backend Server on port {port}...")
    print(f"User Data Directory: {settings.USER_DATA_DIR}")
    uvicorn.run(app, host="127.0.0.1", port=port, reload=False, workers=1)
