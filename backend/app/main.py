from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import (
    auth,
    cart,
    categories,
    customers,
    inventory,
    orders,
    payments,
    products,
    receipts,
    reports,
    settings as store_settings,
    shifts,
    staff,
    tax,
)
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import configure_logging

VERSION = "0.2.0"

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Hệ thống bán hàng cho cửa hàng bán lẻ Việt Nam: thuế GTGT/TTĐB, tích điểm, ca làm việc",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
for module in (
    auth,
    products,
    categories,
    inventory,
    cart,
    tax,
    orders,
    customers,
    staff,
    shifts,
    payments,
    receipts,
    reports,
    store_settings,
):
    app.include_router(module.router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": VERSION}
