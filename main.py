# main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from config import settings
from containers import container
from db import async_session, init_db
from seed import seed_demo_data

from endpoints.api_auth import router as api_auth_router
from endpoints.api_chat import router as api_chat_router
from endpoints.api_counselor import router as api_counselor_router
from endpoints.web_pages import router as web_pages_router

# Импортируем модули для 'wire'
import endpoints.utils as endpoints_utils_module

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    if settings.SEED_DEMO_DATA:
        async with async_session() as session:
            await seed_demo_data(session)
    logger.info("%s started", settings.PROJECT_NAME)
    yield

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Подключаем контейнер к модулям.
# Это необходимо, чтобы декоратор @inject заработал.
container.wire(modules=[endpoints_utils_module])
app.container = container

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Некорректное тело/параметры считаем InvalidArgument (400), а не 422
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.include_router(web_pages_router)
app.include_router(api_auth_router)
app.include_router(api_chat_router)
app.include_router(api_counselor_router)

app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")


if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=False)
