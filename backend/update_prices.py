# ----------------------------------
# Price Update Script
# ----------------------------------
# This script asks the running API to ingest today's real-time quotes.

import argparse
import logging
from datetime import datetime

import requests

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def update_prices(base_url: str = "http://localhost:8000", timeout: float = 120.0) -> dict:
    """Trigger quote ingestion and return the API's report."""
    try:
        # Call the ingestion endpoint
        response = requests.post(f"{base_url.rstrip('/')}/api/fetch-stock-data", timeout=timeout)
        response.raise_for_status()

        result = response.json()
        logger.info(f"Updated {result['updated']} stocks, {result['failed']} failed")
        if result["failedStocks"]:
            logger.warning(f"Failed stocks: {', '.join(result['failedStocks'])}")
        return result

    except Exception as e:
        logger.error(f"Error updating prices: {str(e)}")
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ingest real-time quotes through the API")
    parser.add_argument("--base-url", type=str, default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()

    logger.info(f"Starting price update at {datetime.now()}")
    update_prices(args.base_url)
    logger.info("Price update completed")
