import argparse
import logging

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.engine import get_engine
from app.db.schema import metadata

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create the ledger tables.")
    parser.add_argument(
        "--drop",
        action="store_true",
        help="drop existing tables first (destroys all ledger data)",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level)
    engine = get_engine()
    if args.drop:
        metadata.drop_all(engine)
        logger.warning("Dropped existing tables at %s", engine.url)
    metadata.create_all(engine)
    logger.info("DB schema created at %s", engine.url)


if __name__ == "__main__":
    main()
