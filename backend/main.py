import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.logging_config import configure_logging
from backend.database import Base, engine
from backend.models import session, skill, user  # noqa: F401
from backend.routes import matching_routes, session_routes, user_routes

app = FastAPI(title='SkillSwap API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [error['msg'] for error in exc.errors()]
    logger.info('Rejected %s %s: %s', request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': 'Validation failed', 'errors': errors},
    )


@app.on_event('startup')
def initialize_application() -> None:
    configure_logging()
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'SkillSwap API Running'}


app.include_router(matching_routes.router, prefix='/matching')
app.include_router(session_routes.router, prefix='/sessions')
app.include_router(user_routes.router, prefix='/users')
