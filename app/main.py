#!/usr/bin/env python3
"""
学习计划与月度报告服务 - FastAPI 主应用入口
Description: 学生端保存每日学习记录，教师端查看进度，按月生成并展示学习报告
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.sessions import SessionMiddleware

from app.config.settings import Settings, apply_required_settings, settings
from app.context import build_context
from app.utils.helpers import format_timestamp
from app.utils.logger import setup_logging
from app.api.routes import auth, books, progress, reports

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理
    - 启动时校验配置并构建应用上下文
    - 关闭时记录日志
    """
    config: Settings = app.state.settings
    setup_logging(config)
    logger.info(f"初始化{config.APP_NAME}...")

    try:
        config = apply_required_settings(config)
        app.state.settings = config
        if getattr(app.state, "context", None) is None:
            app.state.context = build_context(config)
        logger.info("应用上下文初始化完成")
    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    logger.info(f"{config.APP_NAME} 启动完成，环境: {config.ENVIRONMENT}")

    yield  # 应用运行期间

    logger.info(f"{config.APP_NAME} 已安全关闭")


def create_application(config: Settings = None) -> FastAPI:
    """创建并配置FastAPI应用实例"""
    config = config or settings

    app = FastAPI(
        title=config.APP_NAME,
        description="学习计划记录与月度学习报告服务",
        version=config.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = config
    app.state.context = None

    # Cookie 会话（24小时）
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.SESSION_SECRET,
        max_age=config.SESSION_MAX_AGE,
        same_site="lax",
        https_only=config.is_production,
    )

    # 生产环境不允许跨域
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if config.is_production else [
            "http://localhost:5000",      # 开发环境
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 全局异常处理
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=content
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        logger.warning(f"请求参数校验失败 {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "요청 형식이 올바르지 않습니다."}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.error(f"未处理的异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "内部服务器错误"}
        )

    # 注册路由
    app.include_router(auth.router, tags=["学生登录"])
    app.include_router(progress.router, tags=["学习记录"])
    app.include_router(books.router, tags=["书目搜索"])
    app.include_router(reports.router, tags=["月度报告"])

    @app.get("/")
    async def root():
        """根端点 - 服务状态检查"""
        return {
            "status": "running",
            "service": app.state.settings.APP_NAME,
            "version": app.state.settings.APP_VERSION,
            "timestamp": format_timestamp()
        }

    @app.get("/health")
    async def health_check():
        """健康检查端点"""
        context = app.state.context
        notion_status = context is not None and await run_in_threadpool(context.gateway.check_connection)
        llm_status = False
        if context is not None and context.summarizer.available:
            llm_status = await context.summarizer.llm_client.check_connection()

        return {
            "status": "healthy" if notion_status else "unhealthy",
            "notion": "connected" if notion_status else "disconnected",
            "llm_service": "connected" if llm_status else "disconnected",
            "timestamp": format_timestamp()
        }

    return app


# 创建应用实例
app = create_application()
