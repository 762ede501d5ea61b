"""
FastAPI backend for the Property Map API.
"""

import time
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
import logging


from config import (
    ENVIRONMENT,
    GEOCODER_PROVIDER,
    LOG_LEVEL,
    get_geocoder_instance,
    is_production,
    set_geocoder_instance,
)
from api.cache import get_cache_stats, init_cache
from api.routes import geocode, map, properties
from api.services.geocoding import create_geocoder

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

# Geocode cache lives for the whole process
init_cache()

# Set GEOCODER_PROVIDER=bing to query Bing Maps only, or leave the default
# "fallback" to also match known Nigerian city coordinates
geocoder_instance = create_geocoder()
set_geocoder_instance(geocoder_instance)
logger.info(f"Geocoder instance set: {type(geocoder_instance).__name__}")

# Create FastAPI app
app = FastAPI(
    title="Property Map API",
    description="API for property map clustering, heatmaps, draw-search and geocoding",
    version="1.0.0",
)

# Log each request method, path, and running time
class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s %.2f ms", request.method, request.url.path, elapsed_ms)
        return response


app.add_middleware(RequestTimingMiddleware)

# Allow all origins; credentials must stay off with a wildcard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Include routers
app.include_router(map.router, prefix="/api/maps", tags=["maps"])
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(geocode.router, prefix="/api/geocode", tags=["geocode"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Property Map API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health")
async def health():
    """Health check endpoint with environment, geocoder and cache info."""
    try:
        geocoder = get_geocoder_instance()
        geocoder_info = {
            "provider": GEOCODER_PROVIDER,
            "type": type(geocoder).__name__,
            "configured": True,
        }
        status = "healthy"
    except RuntimeError as e:
        geocoder_info = {"provider": GEOCODER_PROVIDER, "configured": False, "error": str(e)}
        status = "unhealthy"

    return {
        "status": status,
        "environment": "production" if is_production() else "development",
        "environment_variable": ENVIRONMENT,
        "geocoder": geocoder_info,
        "cache": get_cache_stats(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
