"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Supabase ---
SUPABASE_URL: str = os.environ["SUPABASE_URL"]
SUPABASE_SECRET_KEY: str = os.environ["SUPABASE_SECRET_KEY"]

# --- 高速ランキング (RPC) ---
RANKED_PRODUCTS_RPC = "dir_ranked_products"
FAST_PATH_ENABLED = os.environ.get("DIR_FAST_PATH_ENABLED", "1").strip().lower() not in (
    "0", "false", "no", "off",
)

# --- ページング ---
PAGE_MAX = 5000
DEFAULT_LIMIT = 20
LIMIT_MAX = 50
QUERY_MAX_LENGTH = 100

# --- API サーバ ---
API_HOST = os.environ.get("DIR_API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("DIR_API_PORT", "8000"))

# --- ログ ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)
