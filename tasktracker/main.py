import logging
import sys
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from tasktracker.core import config
from tasktracker.core.errors import register_error_handlers
from tasktracker.database import init_db
from tasktracker.routes import auth_routes, task_routes

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s  %(levelname)-8s  %(name)s - %(message)s',
        stream=sys.stdout,
    )


def create_app() -> FastAPI:
    app = FastAPI(title='Task Tracker API', version='1.0.0')

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_error_handlers(app)

    @app.on_event('startup')
    def initialize() -> None:
        config.validate_runtime_config()
        try:
            init_db()
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')
            raise
        logger.info('Task Tracker API ready (env=%s)', config.APP_ENV)

    @app.get('/healthcheck')
    def healthcheck():
        return {'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(task_routes.router, prefix='/tasks')

    return app


configure_logging()
app = create_app()


if __name__ == '__main__':
    uvicorn.run(
        'tasktracker.main:app',
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )
