import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from netatmo_wrapper.config import CONTEXT_ROOT, CORS_ORIGINS
from netatmo_wrapper.logging_config import setup_logging
from netatmo_wrapper.routes.admin import router as admin_router
from netatmo_wrapper.runtime import Runtime

# Initialize logging before anything else
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Netatmo IoT Wrapper", version="1.0.0")
logger.info("FastAPI app created")

app.include_router(admin_router, prefix=CONTEXT_ROOT)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    logger.info("Netatmo IoT Wrapper starting up")
    app.state.runtime = await Runtime.bootstrap()
    for route in admin_router.routes:
        methods = ",".join(sorted(route.methods))
        logger.info(f"'{methods}' method available at {CONTEXT_ROOT}{route.path}")
    logger.info("Initialization completed")


@app.on_event("shutdown")
async def shutdown_event():
    runtime = getattr(app.state, "runtime", None)
    if runtime is not None:
        await runtime.aclose()
    logger.info("Netatmo IoT Wrapper stopped")


@app.get(f"{CONTEXT_ROOT}/health")
async def health_check():
    return {"status": "ok"}
