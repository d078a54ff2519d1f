# taskhub/initial_data.py

import logging
from sqlalchemy.orm import Session
from taskhub.database import SessionLocal, engine
from taskhub.crud.user import create_user as crud_create_user, get_user_by_username
from taskhub.core.settings import settings
from taskhub.core.exceptions import BaseAppException
from taskhub.models.base import Base
from taskhub.models.user import UserRole
import taskhub.models  # noqa: F401

logger = logging.getLogger("TaskHub.InitialData")

def create_initial_admin_user(db: Session) -> None:
    logger.info("Checking if initial admin user needs to be created...")
    superuser_username = settings.FIRST_SUPERUSER_USERNAME
    superuser_email = settings.FIRST_SUPERUSER_EMAIL
    superuser_password = settings.FIRST_SUPERUSER_PASSWORD
    if not (superuser_username and superuser_email and superuser_password):
        logger.info("FIRST_SUPERUSER_* settings are not set. Skipping admin bootstrap.")
        return

    admin_user = get_user_by_username(db, username=superuser_username)
    if not admin_user:
        logger.info(f"Admin user '{superuser_username}' not found. Creating...")
        user_data = {
            "username": superuser_username,
            "email": superuser_email,
            "password": superuser_password,
            "role": UserRole.admin,
        }
        try:
            crud_create_user(db=db, data=user_data)
            logger.info(f"Admin user '{superuser_username}' created successfully.")
        except BaseAppException as e:
            logger.error(f"Failed to create admin user: {e.message}")
    else:
        logger.info(f"Admin user '{superuser_username}' already exists. No action taken.")

def main() -> None:
    logger.info("Initializing initial data (admin user)...")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        create_initial_admin_user(db)
    finally:
        db.close()
    logger.info("Finished initial data setup.")

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    main()
