# checklist/initial_data.py

import asyncio
import logging
from typing import Optional
from sqlalchemy.orm import Session
from checklist.database import SessionLocal, init_db
from checklist.crud.user import create_user as crud_create_user, get_user_by_email
from checklist.models.user import User
from checklist.core.settings import settings
from checklist.core.exceptions import UserValidationError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Checklist.InitialData")

async def create_initial_user(db: Session) -> Optional[User]:
    """
    Создаёт первого пользователя из FIRST_USER_* (если задано и его ещё нет).
    """
    email = settings.FIRST_USER_EMAIL
    password = settings.FIRST_USER_PASSWORD
    if not email or not password:
        logger.info("FIRST_USER_EMAIL / FIRST_USER_PASSWORD not set, skipping initial user.")
        return None

    existing = get_user_by_email(db, email)
    if existing:
        logger.info(f"Initial user '{email}' already exists. No action taken.")
        return existing

    logger.info(f"Initial user '{email}' not found. Creating...")
    try:
        user = crud_create_user(db, {"name": settings.FIRST_USER_NAME, "email": email, "password": password})
    except UserValidationError as e:
        logger.error(f"Failed to create initial user: {e}")
        return None
    logger.info(f"Initial user '{email}' created successfully.")
    return user

async def main() -> None:
    logger.info("Initializing database and initial data...")
    init_db()
    db = SessionLocal()
    try:
        await create_initial_user(db)
    finally:
        db.close()
    logger.info("Finished initial data setup.")

if __name__ == "__main__":
    from dotenv import load_dotenv
    load_dotenv()

    asyncio.run(main())
