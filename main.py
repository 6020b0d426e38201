from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from mangum import Mangum
from config import ENVIRONMENT, UPLOAD_DIR, async_engine, init_db
import logging
import os

from routers.auth.auth import router as auth_router
from routers.users.users import router as users_router
from routers.admin.admin import router as admin_router
from routers.stock.stock import router as stock_router
from routers.products.products import router as products_router
from routers.cart.cart import router as cart_router
from routers.checkout.checkout import router as checkout_router
from routers.orders.orders import router as orders_router
from routers.delivery.delivery import router as delivery_router
from routers.payments.payments import router as payments_router
from routers.reorders.reorders import router as reorders_router
from routers.suppliers.suppliers import router as suppliers_router
from routers.feedback.feedback import router as feedback_router
from routers.finance.finance import router as finance_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

IS_PRODUCTION = ENVIRONMENT == "prod"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if ENVIRONMENT == "dev" and async_engine is not None:
        await init_db()
        logger.info("Database tables ensured")
    yield


app = FastAPI(
    title="ReBuy.lk API",
    description="Backend for ReBuy.lk, a marketplace for refurbished electronics with stock, orders, payments and supplier offers.",
    version="1.0.0",
    root_path="/Prod" if IS_PRODUCTION else "",
    docs_url="/apidocs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_message(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    # pydantic prefixes messages raised from custom validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [_validation_message(error) for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ", ".join(messages)}
    )


for router in (
    auth_router,
    users_router,
    admin_router,
    stock_router,
    products_router,
    cart_router,
    checkout_router,
    orders_router,
    delivery_router,
    payments_router,
    reorders_router,
    suppliers_router,
    feedback_router,
    finance_router,
):
    app.include_router(router)

os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

STOPLIGHT_PAGE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>ReBuy.lk API Reference</title>
  <script src="https://unpkg.com/@stoplight/elements/web-components.min.js"></script>
  <link rel="stylesheet" href="https://unpkg.com/@stoplight/elements/styles.min.css">
</head>
<body>
  <elements-api apiDescriptionUrl="{schema_url}" router="hash" layout="sidebar" />
</body>
</html>"""

HOME_LINKS = (
    ("/docs", "Stoplight reference"),
    ("/apidocs", "Swagger UI"),
    ("/redoc", "ReDoc"),
    ("/openapi.json", "OpenAPI schema"),
)


@app.get("/docs", include_in_schema=False)
async def api_documentation(request: Request):
    # behind API Gateway the stage prefix must be part of the schema URL
    schema_url = request.scope.get("root_path", "") + app.openapi_url
    return HTMLResponse(STOPLIGHT_PAGE.format(schema_url=schema_url))


@app.get("/", response_class=HTMLResponse)
def home():
    """Landing page linking the API references"""
    links = "".join(f'<li><a href="{href}">{label}</a></li>' for href, label in HOME_LINKS)
    return (
        "<html><head><title>ReBuy.lk API</title></head>"
        "<body style=\"font-family: Helvetica, sans-serif; margin: 40px\">"
        "<h1>ReBuy.lk API</h1><p>Refurbished electronics marketplace backend.</p>"
        f"<ul>{links}</ul></body></html>"
    )


handler = Mangum(app)
