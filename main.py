import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings
from database import engine
from errors import ServiceError
from athlete_service import router as athlete_router
from race_service import router as race_router
from training.router import router as training_router
import models

# Logger configuration
logging.basicConfig(level=Settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables (if missing)
    models.Base.metadata.create_all(bind=engine)
    logger.info(f"Running Coach API started (env={Settings.ENVIRONMENT}, llm={Settings.LLM_BACKEND})")
    yield


app = FastAPI(
    title="Running Coach API",
    description="Runner profiles, races and AI-generated training plans with workout analysis.",
    version=Settings.VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============ Error Handling ============

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(include_details=Settings.is_development())
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    body = {"error": "Invalid request"}
    if Settings.is_development():
        body["details"] = [
            {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
            for err in exc.errors()
        ]
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    body = {"error": "Internal server error"}
    if Settings.is_development():
        body["details"] = str(exc)
    return JSONResponse(status_code=500, content=body)


# Attach routers
app.include_router(athlete_router, tags=["Athletes"])
app.include_router(race_router, prefix="/races", tags=["Races"])
app.include_router(training_router)


@app.get("/health")
async def health_check():
    """
    Service health check.
    """
    return {
        "status": "OK",
        "timestamp": datetime.utcnow().isoformat(),
        "version": Settings.VERSION
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
