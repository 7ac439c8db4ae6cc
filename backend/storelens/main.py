from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storelens.api.v1 import api_v1
from storelens.core.config import settings
from storelens.core.logging import configure_logging
from storelens.db.session import dispose_engine

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.start env=%s prefix=%s", settings.ENVIRONMENT, settings.API_PREFIX)
    yield
    # 优雅关停：释放连接池
    dispose_engine()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# 从环境读取前端白名单（逗号分隔）。本地可配：
# BACKEND_CORS_ORIGINS=http://localhost:5173,https://app.local.test:5173
# webhook 是服务器回调，不受 CORS 影响
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


app.include_router(api_v1, prefix=settings.API_PREFIX)


# 根路径探活（方便 Docker 健康检查）
@app.get("/")
def root():
    return {
        "app": settings.PROJECT_NAME,
        "env": settings.ENVIRONMENT,
        "ok": True,
    }
