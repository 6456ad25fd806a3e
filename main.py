from fastapi import FastAPI, status, Request
from fastapi.middleware.cors import CORSMiddleware
from taskmanager.core import config
from taskmanager.core.exceptions import register_exception_handlers
from taskmanager.db.base import Base, engine
from taskmanager.api.v1.auth import router as auth_router
from taskmanager.api.v1.task import router as task_router
from taskmanager.api.v1.user import router as user_router
from taskmanager.api.v1.notification import router as notification_router
from taskmanager.services.notification_service import notification_service
from taskmanager.services.scheduler import TaskScheduler
from taskmanager.utils.logger import setup_logging, get_logger
import atexit

# Import all models to register them with SQLAlchemy
from taskmanager.db.models import User, Task  # noqa: F401

setup_logging(config.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(title="Task Manager API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router)
app.include_router(task_router)
app.include_router(user_router)
app.include_router(notification_router)

# Create tables
Base.metadata.create_all(bind=engine)

app.state.scheduler = None


@app.on_event("startup")
async def startup_event():
    if not config.SCHEDULER_ENABLED:
        logger.info("Application started - Task scheduler disabled")
        return

    scheduler = TaskScheduler(notifier=notification_service)
    scheduler.start()
    atexit.register(scheduler.shutdown)
    app.state.scheduler = scheduler
    logger.info("Application started - Task scheduler running")


@app.on_event("shutdown")
async def shutdown_event():
    scheduler = app.state.scheduler
    if scheduler is not None:
        scheduler.shutdown()
        app.state.scheduler = None
    logger.info("Application shutdown - Scheduler stopped")


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    scheduler = request.app.state.scheduler
    running = scheduler is not None and scheduler.running
    return {"status": "healthy", "scheduler": "running" if running else "stopped"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app="main:app", host="0.0.0.0", port=8000, reload=True)
