from contextlib import asynccontextmanager

from fastapi import FastAPI

from API.config import config_router, settings
from API.mql import mql_router
from DB.executor import close_client
from observability.logger import setup_logger
from observability.metrics import metrics_router
from observability.middleware import metrics_and_logging_middleware

setup_logger()  # once


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_client()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.middleware("http")(metrics_and_logging_middleware)

app.include_router(mql_router, tags=["mql"])
app.include_router(config_router, tags=["config"])
app.include_router(metrics_router, tags=["metrics"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
