# NOTE: Creates the record tables declared in models.py on the configured database
import logging
import sys
from typing import List

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from hospital_services.database import engine
from hospital_services.models import Base

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def missing_tables() -> List[str]:
    """Record tables declared in the models but absent from the database."""
    existing = set(inspect(engine).get_table_names())
    return sorted(set(Base.metadata.tables) - existing)


def setup_database() -> bool:
    """Create whichever record tables are missing; False when the database can't be reached."""
    try:
        missing = missing_tables()
        if not missing:
            logger.info("All record tables present")
            return True
        logger.info(f"Creating record tables: {', '.join(missing)}")
        Base.metadata.create_all(bind=engine)
        return True
    except SQLAlchemyError as e:
        logger.error(f"Record table setup failed on {engine.url.render_as_string(hide_password=True)}: {e}")
        return False


if __name__ == "__main__":
    sys.exit(0 if setup_database() else 1)
