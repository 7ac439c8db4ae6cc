# 环境变量和配置
# pydantic-settings 读取 .env = core/config.py

from typing import List, Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 本机直接跑 uvicorn 时（不走 Docker），才会读取 backend/.env

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # ========= project config =========
    PROJECT_NAME: str = "Storelens"
    ENVIRONMENT: str = "dev"
    API_PREFIX: str = "/api/v1"
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"


    # ========= Database =========
    # 容器内默认连 docker 网络里的 "db" 服务；测试时用 sqlite 覆盖
    DATABASE_URL: str = Field(
        default="postgresql+psycopg://storelens:storelens@db:5432/storelens",
        alias="DATABASE_URL",
    )
    DB_POOL_SIZE: int = Field(10, ge=1, alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(20, ge=0, alias="DB_MAX_OVERFLOW")


    # ========= Shopify webhook =========
    SHOPIFY_WEBHOOK_SECRET: Optional[str] = Field(None, alias="SHOPIFY_WEBHOOK_SECRET")   # app 的 API secret，HMAC 用
    SHOPIFY_API_VERSION: str = Field("2025-07", alias="SHOPIFY_API_VERSION")
    APP_URL: Optional[str] = Field(None, alias="APP_URL")                                  # 公网地址，注册 webhook 回调用
    WEBHOOK_TOPICS: List[str] = Field(
        default_factory=lambda: [
            "customers/create",
            "customers/update",
            "products/create",
            "products/update",
            "orders/create",
            "orders/updated",
        ],
        alias="WEBHOOK_TOPICS",
    )

    # 网络/HTTP 层配置（注册 webhook 时用）
    SHOPIFY_HTTP_TIMEOUT: int = Field(30, alias="SHOPIFY_HTTP_TIMEOUT")
    SHOPIFY_HTTP_RETRIES: int = Field(3, alias="SHOPIFY_HTTP_RETRIES")
    SHOPIFY_HTTP_BACKOFF_MS: int = Field(200, alias="SHOPIFY_HTTP_BACKOFF_MS")


    # ========= ingestion =========
    # 订单状态推导优先级：financial_first = 已付款优先于已发货
    ORDER_STATUS_PRECEDENCE: Literal["financial_first", "fulfillment_first"] = Field(
        "financial_first", alias="ORDER_STATUS_PRECEDENCE"
    )
    DEFAULT_CURRENCY: str = Field("USD", alias="DEFAULT_CURRENCY")
    PROCESSING_LOG_ERROR_MAX: int = Field(2000, ge=50, alias="PROCESSING_LOG_ERROR_MAX")


    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()  # 只从环境读取（含 .env）
