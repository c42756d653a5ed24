from typing import List, Optional

from fastapi import FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from order_tracking.api.schemas import (
    CustomerIn,
    CustomerOrderCount,
    CustomerOut,
    OrderDetailOut,
    OrderIn,
    OrderItemOut,
    OrderOut,
    OrderWithItemsOut,
    ProductIn,
    ProductOut,
    RevenueSummary,
    StockAdjustment,
)
from order_tracking.core.catalog import Catalog
from order_tracking.core.customers import CustomerDirectory
from order_tracking.core.errors import (
    DuplicateEmailError,
    InsufficientStockError,
    NotFoundError,
    OrderTrackingError,
    ValidationError,
)
from order_tracking.core.ledger import OrderLedger
from order_tracking.core.logging import configure_logging
from order_tracking.core.reporting import ReportingEngine
from order_tracking.db.session import Database

openapi_tags = [
    {"name": "Health", "description": "Service and dependency health checks."},
    {"name": "Customers", "description": "Customer registration and lookup."},
    {"name": "Products", "description": "Catalog and stock levels."},
    {"name": "Orders", "description": "Order placement and retrieval."},
    {"name": "Reports", "description": "Revenue, order counts and low-stock alerts."},
]

_STATUS_BY_ERROR = [
    (NotFoundError, 404),
    (DuplicateEmailError, 409),
    (InsufficientStockError, 409),
    (ValidationError, 422),
]


def _status_for(exc: OrderTrackingError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return 400


# PUBLIC_INTERFACE
def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the HTTP app around one Database handle; every route forwards to the core."""
    if database is None:
        configure_logging()
        database = Database()
        database.create_schema()

    directory = CustomerDirectory(database)
    catalog = Catalog(database)
    ledger = OrderLedger(database)
    reports = ReportingEngine(database, catalog=catalog, directory=directory)

    app = FastAPI(
        title="Order Tracking API",
        description="Customers, product catalog, orders and sales reports.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OrderTrackingError)
    async def domain_error_handler(request: Request, exc: OrderTrackingError):
        return JSONResponse(status_code=_status_for(exc), content={"detail": str(exc), "error": type(exc).__name__})

    @app.get("/", tags=["Health"], summary="Service health check")
    def health_check():
        """Basic health check for the service (no external dependencies)."""
        return {"message": "Healthy"}

    @app.get("/health/db", tags=["Health"], summary="Database health check")
    def health_db_check():
        """
        Check database connectivity.

        Returns a JSON payload indicating whether the database is reachable.
        """
        ok = database.healthcheck()
        return {"database": "ok" if ok else "unreachable", "ok": ok}

    @app.post("/customers", tags=["Customers"], response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
    def register_customer(body: CustomerIn):
        return directory.register(body.name, body.email)

    @app.get("/customers", tags=["Customers"], response_model=List[CustomerOut])
    def list_customers():
        return directory.list()

    @app.get("/customers/{customer_id}", tags=["Customers"], response_model=CustomerOut)
    def get_customer(customer_id: int):
        return directory.find(customer_id)

    @app.get("/customers/{customer_id}/orders", tags=["Orders"], response_model=List[OrderOut])
    def list_customer_orders(customer_id: int):
        return ledger.list_orders_for_customer(customer_id)

    @app.post("/products", tags=["Products"], response_model=ProductOut, status_code=status.HTTP_201_CREATED)
    def add_product(body: ProductIn):
        return catalog.add(body.name, body.description, price=body.price, stock=body.stock)

    @app.get("/products/{product_id}", tags=["Products"], response_model=ProductOut)
    def get_product(product_id: int):
        return catalog.find(product_id)

    @app.post("/products/{product_id}/stock", tags=["Products"], response_model=ProductOut)
    def adjust_stock(product_id: int, body: StockAdjustment):
        return catalog.adjust_stock(product_id, body.delta)

    @app.post("/orders", tags=["Orders"], response_model=OrderWithItemsOut, status_code=status.HTTP_201_CREATED)
    def create_order(body: OrderIn):
        order = ledger.create_order(body.customer_id, [(line.product_id, line.quantity) for line in body.items])
        return _order_with_items(*ledger.get_order(order.id))

    @app.get("/orders/{order_id}", tags=["Orders"], response_model=OrderWithItemsOut)
    def get_order(order_id: int):
        return _order_with_items(*ledger.get_order(order_id))

    @app.get("/reports/summary", tags=["Reports"], response_model=RevenueSummary)
    def revenue_summary():
        return RevenueSummary(
            total_revenue=reports.total_revenue(),
            average_order_value=reports.average_order_value(),
        )

    @app.get("/reports/order-counts", tags=["Reports"], response_model=List[CustomerOrderCount])
    def order_counts():
        return [
            CustomerOrderCount(customer_id=customer.id, customer_name=customer.name, total_orders=count)
            for customer, count in reports.order_counts_by_customer().items()
        ]

    @app.get("/reports/low-stock", tags=["Reports"], response_model=List[ProductOut])
    def low_stock(threshold: int = Query(10, description="Report products with stock below this value.")):
        return reports.low_stock_products(threshold)

    @app.get("/reports/order-details", tags=["Reports"], response_model=List[OrderDetailOut])
    def order_details():
        return [OrderDetailOut(**detail._asdict()) for detail in reports.order_details()]

    return app


def _order_with_items(order, items) -> OrderWithItemsOut:
    return OrderWithItemsOut(
        id=order.id,
        customer_id=order.customer_id,
        order_date=order.order_date,
        total_amount=order.total_amount,
        items=[OrderItemOut.model_validate(item) for item in items],
    )
