import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.db.database import close_database, connect_database
from app.routers import journal_router
from app.routers import mistake_router
from app.routers import overthinking_router
from app.routers import stat_router
from app.routers import user_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    connect_database()
    logger.info("Environment: %s", settings.ENVIRONMENT)
    yield
    close_database()


app = FastAPI(
    title="Mental Clarity Backend",
    description="Journal, overthinking and mistake tracking with AI journal analysis.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Stats routes first so "/stats" is not captured by "/{entry_id}"
app.include_router(stat_router.router)
app.include_router(user_router.router)
app.include_router(journal_router.router)
app.include_router(overthinking_router.router)
app.include_router(mistake_router.router)


@app.get("/api/health", tags=["Health"])
async def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Something went wrong!",
            "message": str(exc) if settings.is_development else "Internal server error",
        },
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
