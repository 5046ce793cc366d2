"""例外定義."""


class DirectoryError(Exception):
    """ディレクトリ検索処理の基底例外."""


class DataUnavailable(DirectoryError):
    """サブスクリプション・商品の読み出しに失敗した（リクエスト単位で致命的）."""


class CapabilityUnavailable(DirectoryError):
    """高速ランキング (RPC) が使えない。フォールバックのトリガーにのみ使う."""
