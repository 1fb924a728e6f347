"""Logging utilities for the configuration store."""

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "cmsconf"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "cmsconf.log"

# setup_logging が追加したハンドラの目印
_HANDLER_MARK = "_cmsconf_handler"


def _install(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)


def setup_logging(debug_mode: bool = False, output_dir: Optional[str] = None) -> logging.Logger:
    """cmsconf パッケージのロガーを設定する

    ルートロガーには触れず、アプリケーション側のハンドラはそのまま残す。
    再設定時は以前に本関数が追加したハンドラのみを置き換える。
    上位ロガーへの伝播は維持する。

    Args:
        debug_mode: デバッグモードの場合True
        output_dir: ログファイルの出力ディレクトリ（Noneの場合はコンソールのみ）

    Returns:
        設定済みのパッケージロガー
    """
    log_level = logging.DEBUG if debug_mode else logging.INFO
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in package_logger.handlers[:]:
        if getattr(handler, _HANDLER_MARK, False):
            package_logger.removeHandler(handler)
            handler.close()

    # 設定エラーは標準エラーへ
    _install(package_logger, logging.StreamHandler(sys.stderr), log_level)

    if output_dir is not None:
        log_dir = Path(output_dir)
        log_dir.mkdir(exist_ok=True, parents=True)
        _install(package_logger, logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"), log_level)

    package_logger.setLevel(log_level)
    return package_logger
