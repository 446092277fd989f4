# campusbooks/push_db.py
"""Create the books and users tables in the configured database.

Run with ``python -m campusbooks.push_db``.
"""
from .config import get_settings
from .db import init_db, make_engine
from .utils import logger


def main():
    settings = get_settings()
    logger.info("Connecting to database...")
    engine = make_engine(settings)
    try:
        logger.info("Connected to database. Creating schema...")
        init_db(engine)
        logger.info("Schema created successfully!")
    finally:
        engine.dispose()


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        logger.exception("Error while creating schema: %s", e)
        raise SystemExit(1)
