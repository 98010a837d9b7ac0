import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from swastyasetu.auth.roles import ensure_admin_account
from swastyasetu.core import config
from swastyasetu.database import (
    Base,
    SessionLocal,
    engine,
    ensure_appointment_schema,
    ensure_chat_schema,
    ensure_user_schema,
)
from swastyasetu.models import appointment, chat_message, doctor, user  # noqa: F401
from swastyasetu.routes import (
    appointment_routes,
    auth_routes,
    availability_routes,
    chat_routes,
    doctor_routes,
)

app = FastAPI(title='SwastyaSetu Scheduling API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
        ensure_appointment_schema()
        ensure_chat_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
        return

    db = SessionLocal()
    try:
        ensure_admin_account(db)
    except SQLAlchemyError:
        logger.exception('Could not create the admin account.')
    finally:
        db.close()


@app.get('/')
def root():
    return {'status': 'SwastyaSetu API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(doctor_routes.router, prefix='/doctors')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(chat_routes.router, prefix='/chat')


def run() -> None:
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == '__main__':
    run()
