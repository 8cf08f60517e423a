import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow.database import init_db
from taskflow.routes.ai_routes import router as ai_router
from taskflow.routes.capture_routes import router as capture_router
from taskflow.routes.profile_routes import router as profile_router
from taskflow.routes.settings_routes import router as settings_router
from taskflow.routes.task_routes import router as task_router
from taskflow.routes.timebox_routes import router as timebox_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize db configuration
    init_db()
    logger.info("Taskflow API ready")
    yield


app = FastAPI(title="Taskflow", lifespan=lifespan)


@app.get("/api/v1/health-check")
async def health():
    return {"status": "ok", "message": "Backend is alive!"}


# Configure CORS for the local frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(capture_router)
app.include_router(task_router)
app.include_router(timebox_router)
app.include_router(ai_router)
app.include_router(profile_router)
app.include_router(settings_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("taskflow.main:app", host="0.0.0.0", port=8000, reload=True)
