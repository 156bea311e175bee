# storefront/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from storefront.data.database import Base, engine
from storefront.api.routers import users, orders, health
from storefront.domain.errors import OrderError
from storefront.utils.logging import get_logger
import uvicorn

logger = get_logger(__name__)

# every model has to be imported before create_all
from storefront.data.models import UserModel, ProductModel, OrderModel, OrderItemModel  # noqa: E402,F401

logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    """Map OrderError subclasses to HTTP responses."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Order Service",
        version="1.0.0",
    )

    app.add_exception_handler(OrderError, order_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
