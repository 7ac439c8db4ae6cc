# storelens/api/v1/webhooks_shopify.py

from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from storelens.core.config import settings
from storelens.db.session import get_session_factory
from storelens.integrations.shopify.signature import verify_signature
from storelens.services.webhook_pipeline import WebhookPipeline


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/shopify", tags=["webhooks.shopify"])


'''
Webhook 主入口：customers/* products/* orders/* 全部打到同一个 URL，按 X-Shopify-Topic 分发
   - 先 await 读原始 body（验签必须用原始字节，不能用 json 之后再 dumps 的）
   - 验签/查库/upsert 都是同步代码，丢到线程池里跑，不阻塞事件循环
   - 响应码由流水线决定：200/401/404/500
'''
@router.post("")
async def shopify_webhook(
    request: Request,
    x_shopify_hmac_sha256: str = Header(default=""),
    x_shopify_topic: str = Header(default=""),
    x_shopify_shop_domain: str = Header(default=""),
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
):
    raw = await request.body()

    pipeline = WebhookPipeline(session_factory)
    result = await run_in_threadpool(
        pipeline.handle,
        raw,
        signature=x_shopify_hmac_sha256,
        topic=x_shopify_topic,
        shop_domain=x_shopify_shop_domain,
    )
    return JSONResponse(status_code=result.status_code, content=result.body)


'''
隐私合规（GDPR）强制 webhook：
   customers/data_request、customers/redact、shop/redact
   本服务不对外提供客户数据导出/删除，只做验签 + 审计日志 + 200 确认
'''
GDPR_TOPICS = {
    "customer-data-request": "customers/data_request",
    "customer-data-erasure": "customers/redact",
    "shop-data-erasure": "shop/redact",
}


async def _gdpr_ack(request: Request, kind: str, hmac_b64: str, shop_domain: str) -> JSONResponse:
    raw = await request.body()
    if not verify_signature(raw, hmac_b64, settings.SHOPIFY_WEBHOOK_SECRET):
        logger.warning("gdpr.signature_invalid kind=%s shop=%s", kind, shop_domain)
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})

    logger.info("gdpr.received kind=%s topic=%s shop=%s bytes=%d", kind, GDPR_TOPICS[kind], shop_domain, len(raw))
    return JSONResponse(status_code=200, content={"ok": True})


@router.post("/gdpr/customer-data-request")
async def gdpr_customer_data_request(
    request: Request,
    x_shopify_hmac_sha256: str = Header(default=""),
    x_shopify_shop_domain: str = Header(default=""),
):
    return await _gdpr_ack(request, "customer-data-request", x_shopify_hmac_sha256, x_shopify_shop_domain)


@router.post("/gdpr/customer-data-erasure")
async def gdpr_customer_data_erasure(
    request: Request,
    x_shopify_hmac_sha256: str = Header(default=""),
    x_shopify_shop_domain: str = Header(default=""),
):
    return await _gdpr_ack(request, "customer-data-erasure", x_shopify_hmac_sha256, x_shopify_shop_domain)


@router.post("/gdpr/shop-data-erasure")
async def gdpr_shop_data_erasure(
    request: Request,
    x_shopify_hmac_sha256: str = Header(default=""),
    x_shopify_shop_domain: str = Header(default=""),
):
    return await _gdpr_ack(request, "shop-data-erasure", x_shopify_hmac_sha256, x_shopify_shop_domain)
