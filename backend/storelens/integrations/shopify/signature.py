# =============== HMAC 校验工具（Shopify Webhook 签名） ===============

from __future__ import annotations
import base64
import binascii
import hashlib
import hmac
from typing import Optional


def compute_signature(secret: str, raw_body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


'''
必须对“原始 body 字节”签名：JSON 解析后再序列化，空格/键顺序一变签名就对不上。
缺 header、缺 secret、base64 不合法一律返回 False，不抛异常，由调用方回 401。
'''
def verify_signature(raw_body: bytes, provided: Optional[str], secret: Optional[str]) -> bool:
    if not provided or not secret:
        return False

    try:
        provided_digest = base64.b64decode(provided.strip(), validate=True)
    except (binascii.Error, ValueError):
        return False

    expected = hmac.new(secret.encode("utf-8"), raw_body or b"", hashlib.sha256).digest()
    return hmac.compare_digest(provided_digest, expected)
