import logging
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from rewardapi import containers
from rewardapi.config import settings
from rewardapi.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from rewardapi.core.exceptions import BaseAPIException
from rewardapi.logging_config import setup_logging
from rewardapi.routers import (
    coin_router,
    credit_router,
    health_router,
    mystery_ball_router,
    pokemon_router,
)

load_dotenv("rewardapi/.env")
setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"Request: {request.method} {request.url}")
        response = await call_next(request)
        logger.info(f"Response: {response.status_code}")
        return response

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/")
    def hello() -> dict:
        return {"message": "Hello World!"}

    app.include_router(health_router.router)
    app.include_router(coin_router.router, prefix=settings.API_V1_STR)
    app.include_router(credit_router.router, prefix=settings.API_V1_STR)
    app.include_router(pokemon_router.router, prefix=settings.API_V1_STR)
    app.include_router(mystery_ball_router.router, prefix=settings.API_V1_STR)
    return app


app = create_app()

handler = Mangum(app)
