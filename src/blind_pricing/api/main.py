import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config.logging_config import setup_logging
from ..config.settings import get_settings
from ..engine import CatalogUnavailableError, ErrorCode
from .checkout_api import router as checkout_router
from .pricing_api import router as pricing_router

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.log_level, settings.log_json)

app = FastAPI(
    title="Blind Pricing API",
    description="Dimensional pricing for made-to-measure blinds",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pricing_router)
app.include_router(checkout_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are caller-fixable: report them as 400 with the first problem.
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg', 'invalid request')}" if field else first.get("msg", "invalid request")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": {"code": ErrorCode.VALIDATION_ERROR.value, "message": message}},
    )


@app.exception_handler(CatalogUnavailableError)
async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailableError):
    logger.error("Catalog unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": {"code": "CATALOG_UNAVAILABLE", "message": str(exc)}},
    )


@app.get("/")
async def root():
    return {"status": "online", "message": "Blind Pricing API Active"}


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "catalog_dir": str(settings.catalog_dir),
        "shopify_configured": settings.shopify_configured,
        "validate_tolerance": float(settings.validate_tolerance),
        "checkout_tolerance": float(settings.checkout_tolerance),
    }
