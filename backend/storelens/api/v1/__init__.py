from fastapi import APIRouter

# 平台回调 + 运维探活；没有登录态（webhook 靠 HMAC，verify 只回计数）
from .routes_health import router as health_router
from .verify import router as verify_router
from .webhooks_shopify import router as webhooks_router


api_v1 = APIRouter()
api_v1.include_router(health_router)      # /health
api_v1.include_router(verify_router)      # /verify?shop=
api_v1.include_router(webhooks_router)    # /webhooks/shopify
