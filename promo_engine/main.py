
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from promo_engine import config
from promo_engine.database import Base, engine
from promo_engine.errors import EmptyCartError, PricingInvariantError
from promo_engine.models import combo as combo_model, coupon as coupon_model, product as product_model  # noqa: F401
from promo_engine.routers import cart as cart_router
from promo_engine.routers import combos as combos_router
from promo_engine.routers import coupons as coupons_router
from promo_engine.routers import products as products_router
from promo_engine.services.cache import DefinitionCache

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Promotional Pricing API",
    description="Combo offers, coupons and checkout totals for the storefront",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS - keep permissive for demo; restrict in prod
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# admin list screens read through this; writes invalidate it
app.state.definition_cache = DefinitionCache(ttl_seconds=config.DEFINITION_CACHE_TTL_SECONDS)

app.include_router(products_router.router)
app.include_router(combos_router.router)
app.include_router(coupons_router.router)
app.include_router(cart_router.router)


@app.get("/health")
def health():
    return {"status": "healthy"}


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"status_code": status_code, "detail": detail}},
    )


# Proper JSON error with correct status code
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error(exc.status_code, exc.detail)


@app.exception_handler(EmptyCartError)
async def empty_cart_handler(request: Request, exc: EmptyCartError):
    return _error(422, str(exc))


@app.exception_handler(PricingInvariantError)
async def pricing_invariant_handler(request: Request, exc: PricingInvariantError):
    logger.error("Pricing invariant violated on %s: %s", request.url.path, exc, exc_info=exc)
    return _error(500, "Pricing computation failed")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("promo_engine.main:app", host="0.0.0.0", port=8000, reload=True)
