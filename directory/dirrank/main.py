"""ディレクトリ検索 API — メインエントリーポイント."""

from __future__ import annotations

import logging
import sys
from datetime import datetime

import uvicorn

from dirrank.config import API_HOST, API_PORT, FAST_PATH_ENABLED, LOG_DIR


def setup_logging() -> None:
    """ロギングの初期設定."""
    log_file = LOG_DIR / f"dirrank_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def run() -> None:
    """API サーバを起動する."""
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("=== ディレクトリ検索 API 起動: %s:%d (高速パス: %s) ===",
                API_HOST, API_PORT, "有効" if FAST_PATH_ENABLED else "無効")

    uvicorn.run("dirrank.api:app", host=API_HOST, port=API_PORT, log_config=None)


if __name__ == "__main__":
    run()
