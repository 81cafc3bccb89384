import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.config.settings import Settings, settings as default_settings


def setup_logging(config: Settings = None):
    """配置日志系统，控制台与滚动文件双输出"""
    config = config or default_settings
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()

    # 清除已有的处理器，避免重复配置
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatter = logging.Formatter(config.LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / "study_planner.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # 设置特定库的日志级别
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(
        logging.INFO if config.DEBUG else logging.WARNING
    )

    root_logger.info("日志系统初始化完成")
