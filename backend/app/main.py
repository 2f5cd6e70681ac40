from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config.settings import settings
from app.core.middleware import log_requests_middleware
from app.db.base import get_engine
from app.db.base import get_session_factory
from app.db.session import set_global_session_factory
from app.routes.allergy.router import router as allergy_router
from app.routes.patient.router import router as patient_router

# -------------------------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application start-up & shutdown hooks."""
    # ------------------------------------------------------------------ start‑up -----
    logger.info("Application startup …")

    engine = None
    try:
        logger.info("Initializing Database Engine...")
        engine = await get_engine(settings.database_url, echo=settings.sql_echo)
        app.state.engine = engine
        logger.info("DB engine ready and stored in app state.")

        session_factory = await get_session_factory(engine)
        app.state.session_factory = session_factory
        set_global_session_factory(session_factory)
        logger.info("DB session factory ready (globally accessible).")
    except Exception as e:
        logger.critical(
            f"CRITICAL ERROR DURING STARTUP INITIALIZATIONS: {e}", exc_info=True
        )
        if engine:  # Attempt to clean up engine if it was created
            try:
                await engine.dispose()
                logger.info("Disposed engine after startup failure.")
            except Exception as dispose_e:
                logger.error(
                    f"Error disposing engine after startup failure: {dispose_e}"
                )
        raise

    # ------------------------------------------------ give control back
    yield

    # ------------------------------------------------ shutdown --------
    logger.info("Application shutdown …")
    if engine:
        await engine.dispose()
        logger.info("DB engine disposed")


app = FastAPI(title="Patient Allergy Service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests_middleware)

app.include_router(patient_router)
app.include_router(allergy_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
