# 聚合导入所有模型，create_all 时能发现

from .tenant import Tenant
from .customer import Customer
from .product import Product
from .order import Order, OrderItem, OrderStatus
from .processing_log import ProcessingLogEntry, ProcessingStatus

__all__ = [
    "Tenant",
    "Customer",
    "Product",
    "Order", "OrderItem", "OrderStatus",
    "ProcessingLogEntry", "ProcessingStatus",
]
