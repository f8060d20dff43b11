# In main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from google.cloud import firestore

from api import create_app
from config import get_settings
from sendgridemail import SendGridMailer
from services.firestore_storage import FirestoreStorage

logger = logging.getLogger('uvicorn.error')


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: Initializing resources...")
    settings = get_settings()

    try:
        db = firestore.AsyncClient(project=settings.gcp_project, database=settings.firestore_database)
        app.state.storage = FirestoreStorage(db)
        logger.info("Firestore Async client initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize Firestore Async client: {e}")
        app.state.storage = None

    try:
        app.state.mailer = SendGridMailer.from_settings(settings)
        logger.info("SendGrid mailer initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize SendGrid mailer: {e}")
        app.state.mailer = None

    yield
    logger.info("Application shutdown: Cleaning up resources...")
    if getattr(app.state, 'storage', None):
        try:
            await app.state.storage.db.close()  # Close the async client
            logger.info("Firestore Async client closed.")
        except Exception as e:
            logger.error(f"Error closing Firestore client: {e}")


app = create_app(lifespan)
