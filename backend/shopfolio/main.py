"""
shopfolio/main.py - Checkout session backend (FastAPI).

Run locally:  uvicorn shopfolio.main:app --host 0.0.0.0 --port 4242
From a phone use the machine's LAN address, e.g. http://192.168.x.x:4242,
as STOREFRONT_BACKEND_URL on the client.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopfolio.config import configure_logging, get_settings
from shopfolio.integrations.payment import is_simulated
from shopfolio.routers import checkout

logger = logging.getLogger("shopfolio.backend")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Shopfolio Checkout Backend",
        description="Creates hosted payment sessions for the Shopfolio storefront client.",
        version="1.0.0",
    )

    # Configure CORS (allow front-end domain or all origins as configured)
    allow_origins = [origin.strip() for origin in settings.allowed_origins.split(',')] if settings.allowed_origins else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(checkout.router)

    if is_simulated(settings):
        logger.warning("STRIPE_SECRET_KEY not found - payment sessions will be simulated")
    return app


app = create_app()

# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    s = get_settings()
    uvicorn.run("shopfolio.main:app", host=s.backend_host, port=s.backend_port, reload=s.debug)
