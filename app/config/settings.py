import logging
from typing import List, Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """生产环境缺少必需配置"""


# 非生产环境下缺失配置时使用的默认值
DEVELOPMENT_DEFAULTS = {
    "STUDENT_DATABASE_ID": "25409320bce280f8ace1ddcdd022b360",
    "PROGRESS_DATABASE_ID": "25409320bce2807697ede3f1c1b62ada",
    "TEACHER_ACCESS_TOKEN": "dev-teacher-token",
}

REQUIRED_SETTINGS = {
    "STUDENT_DATABASE_ID": "学生登录信息数据库",
    "PROGRESS_DATABASE_ID": "学习进度数据库",
    "TEACHER_ACCESS_TOKEN": "教师访问令牌",
}


class Settings(BaseSettings):
    """应用配置"""

    # 应用配置
    APP_NAME: str = "Readitude 学习计划服务"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Notion 配置
    NOTION_API_BASE: str = "https://api.notion.com/v1"
    NOTION_VERSION: str = "2022-06-28"
    NOTION_TIMEOUT: int = 30
    NOTION_ACCESS_TOKEN: Optional[str] = None
    NOTION_CONNECTOR_URL: Optional[str] = None
    NOTION_CONNECTOR_TOKEN: Optional[str] = None

    # 数据库ID
    STUDENT_DATABASE_ID: Optional[str] = None
    PROGRESS_DATABASE_ID: Optional[str] = None
    ENG_BOOKS_ID: Optional[str] = "9ef2bbaeec19466daa0d0c0677b9eb90"
    KOR_BOOKS_ID: Optional[str] = "cf82d56634574d7e83d893fbf1b1a4e3"
    MONTHLY_REPORT_DB_ID: Optional[str] = None
    TEACHER_DB_ID: Optional[str] = None

    # 会话与鉴权
    SESSION_SECRET: str = "readitude-secret-key-change-in-production"
    SESSION_MAX_AGE: int = 24 * 60 * 60
    TEACHER_ACCESS_TOKEN: Optional[str] = None
    DOMAIN_URL: str = "http://localhost:5000"

    # 大模型配置
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "gemini-2.5-flash"
    LLM_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    LLM_MAX_TOKENS: int = 2000
    LLM_TIMEOUT: int = 60

    # 月度报告配置
    REPORT_TEMPLATE_PATH: str = "app/templates/monthly_report.html"
    COMPLETION_WARNING_CUTOFF: int = 70
    SCORE_WARNING_CUTOFF: int = 60
    TIMEZONE: str = "Asia/Seoul"

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    LOG_DIR: str = "logs"

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


def check_required_settings(config: Settings) -> List[str]:
    """返回未设置的必需配置项名称"""
    return [key for key in REQUIRED_SETTINGS if not getattr(config, key)]


def apply_required_settings(config: Settings) -> Settings:
    """
    校验必需配置
    - 生产环境缺失时抛出 ConfigurationError
    - 其他环境记录警告并使用开发默认值
    """
    missing = check_required_settings(config)
    if not missing:
        return config

    if config.is_production:
        for key in missing:
            logger.error(f"生产环境缺少必需环境变量 {key}: {REQUIRED_SETTINGS[key]}")
        raise ConfigurationError(f"缺少必需环境变量: {', '.join(missing)}")

    for key in missing:
        logger.warning(f"开发环境: 环境变量 {key} ({REQUIRED_SETTINGS[key]}) 未设置，使用默认值")
    return config.model_copy(update={key: DEVELOPMENT_DEFAULTS[key] for key in missing})


# 创建全局配置实例
settings = Settings()
