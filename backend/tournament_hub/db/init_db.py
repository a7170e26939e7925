import logging

from tournament_hub.db.session import engine
from tournament_hub.db.base import Base

# Registers every model on Base.metadata before create_all
import tournament_hub.models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
    logger.info("create_all completed")
