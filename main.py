#!/usr/bin/env python3
import logging
from dotenv import load_dotenv

from config.settings import get_app_config
from app.consumer import start_consumer

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    # Load environment variables
    load_dotenv()

    app_config = get_app_config()
    logging.basicConfig(
        level=logging.DEBUG if app_config["debug"] else app_config["log_level"].upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        logger.info("Starting lecture scheduling consumer")
        start_consumer()
    except KeyboardInterrupt:
        logger.info("Consumer stopped by user")
    except Exception as e:
        logger.error(f"An error occurred: {e}", exc_info=True)
