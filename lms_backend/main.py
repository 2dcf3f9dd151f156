import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms_backend.core import config
from lms_backend.core.errors import register_exception_handlers
from lms_backend.database import Database
from lms_backend.routes import (
    academic_data_routes,
    analytics_routes,
    assignments_routes,
    auth_routes,
    courses_routes,
    progress_routes,
    students_routes,
    submissions_routes,
    teachers_routes,
    units_routes,
    users_routes,
)

logger = logging.getLogger(__name__)


def create_app(database: Database | None = None) -> FastAPI:
    logging.basicConfig(level=config.LOG_LEVEL)

    app = FastAPI(title='LMS API')
    app.state.database = database or Database(config.DATABASE_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    register_exception_handlers(app)

    @app.on_event('startup')
    def initialize_database() -> None:
        config.validate_runtime_config()
        app.state.database.create_all()
        logger.info('LMS API started in %s mode', config.APP_ENV)

    @app.on_event('shutdown')
    def close_database() -> None:
        app.state.database.dispose()

    @app.get('/')
    def root():
        return {'status': 'LMS API Running'}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(users_routes.router, prefix='/users')
    app.include_router(courses_routes.router, prefix='/courses')
    app.include_router(units_routes.router, prefix='/units')
    app.include_router(assignments_routes.router, prefix='/assignments')
    app.include_router(students_routes.router, prefix='/students')
    app.include_router(teachers_routes.router, prefix='/teachers')
    app.include_router(progress_routes.router, prefix='/student-progress')
    app.include_router(submissions_routes.router, prefix='/submissions')
    app.include_router(academic_data_routes.router, prefix='/academic-data')
    app.include_router(analytics_routes.router, prefix='/analytics')

    return app


app = create_app()


def run() -> None:
    uvicorn.run('lms_backend.main:app', host=config.HOST, port=config.PORT)
