# campusbooks/utils.py
"""Shared utilities: logging setup and small helpers used across modules."""
import os
import logging
import uuid
from dotenv import load_dotenv

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("campusbooks")

def new_secret_id() -> str:
    return str(uuid.uuid4())
