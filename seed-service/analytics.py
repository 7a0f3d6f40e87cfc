"""
Analytics Query Service

Read-only aggregate queries against one region's database, each timed so
the dashboard can show where request latency goes.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple

from regions import RegionRegistry

logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 10
RECENT_ORDERS_LIMIT = 20
TREND_WINDOW_HOURS = 24

ORDER_STATS_SQL = """
SELECT
    count(DISTINCT o.id) AS "totalOrders",
    sum(o.total) AS "totalRevenue",
    avg(o.total) AS "avgOrderValue",
    count(DISTINCT oi.product_id) AS "totalProducts",
    count(DISTINCT o.user_id) AS "totalCustomers"
FROM orders o
LEFT JOIN order_items oi ON oi.order_id = o.id
"""

TOP_PRODUCTS_SQL = """
SELECT
    p.id AS "productId",
    p.name AS "productName",
    sum(oi.quantity) AS "totalSold",
    sum(oi.quantity * oi.price) AS "revenue"
FROM order_items oi
LEFT JOIN products p ON p.id = oi.product_id
GROUP BY p.id, p.name
ORDER BY "revenue" DESC
LIMIT %s
"""

RECENT_ORDERS_SQL = """
SELECT
    o.id AS "orderId",
    o.created_at AS "orderDate",
    o.total AS "total",
    o.status AS "status",
    u.name AS "customerName",
    u.email AS "customerEmail",
    count(oi.id) AS "itemCount"
FROM orders o
LEFT JOIN users u ON u.id = o.user_id
LEFT JOIN order_items oi ON oi.order_id = o.id
GROUP BY o.id, u.id
ORDER BY o.created_at DESC
LIMIT %s
"""

HOURLY_TRENDS_SQL = """
SELECT
    date_trunc('hour', o.created_at) AS "hour",
    count(*) AS "orders",
    sum(o.total) AS "revenue"
FROM orders o
WHERE o.created_at >= (now() AT TIME ZONE 'utc') - make_interval(hours => %s)
GROUP BY 1
ORDER BY 1
"""


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def _timed(fn: Callable[[], Any]) -> Tuple[Any, int]:
    start = time.time()
    result = fn()
    return result, _elapsed_ms(start)


class AnalyticsService:
    def __init__(self, registry: RegionRegistry):
        self.registry = registry

    def order_stats(self, store: Any) -> Dict[str, Any]:
        rows = store.fetch_all(ORDER_STATS_SQL)
        return rows[0] if rows else {}

    def top_products(self, store: Any, limit: int = TOP_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
        return store.fetch_all(TOP_PRODUCTS_SQL, (limit,))

    def recent_orders(self, store: Any, limit: int = RECENT_ORDERS_LIMIT) -> List[Dict[str, Any]]:
        return store.fetch_all(RECENT_ORDERS_SQL, (limit,))

    def hourly_trends(self, store: Any, hours: int = TREND_WINDOW_HOURS) -> List[Dict[str, Any]]:
        return store.fetch_all(HOURLY_TRENDS_SQL, (hours,))

    def dashboard(self, region_code: str, include_trends: bool = False) -> Dict[str, Any]:
        """
        Run every dashboard query against one region.

        Timings are wall-clock milliseconds; `db` covers the queries only.

        Raises:
            UnknownRegionError: Region not configured
            StorageError: A query failed
        """
        function_start = time.time()
        store = self.registry.resolve(region_code)

        db_start = time.time()
        stats, stats_ms = _timed(lambda: self.order_stats(store))
        top_products, products_ms = _timed(lambda: self.top_products(store))
        recent_orders, orders_ms = _timed(lambda: self.recent_orders(store))

        queries = {"stats": stats_ms, "products": products_ms, "orders": orders_ms}

        result: Dict[str, Any] = {
            "region": region_code,
            "stats": stats,
            "topProducts": top_products,
            "recentOrders": recent_orders,
        }

        if include_trends:
            trends, trends_ms = _timed(lambda: self.hourly_trends(store))
            result["hourlyTrends"] = trends
            queries["trends"] = trends_ms

        db_ms = _elapsed_ms(db_start)
        result["timing"] = {
            "total": _elapsed_ms(function_start),
            "db": db_ms,
            "queries": queries,
        }
        result["timestamp"] = datetime.now(timezone.utc).isoformat()

        logger.info(f"[{region_code}] Dashboard queries finished in {db_ms}ms")
        return result
