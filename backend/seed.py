import sys
import os

# Add the current directory to sys.path to ensure imports work correctly
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from infra.database.connection import init_db, new_session
from utils.seeding import seed_demo_data
from utils.logger import get_logger

logger = get_logger(__name__)

def main():
    logger.info("Starting manual data seeding...")
    try:
        init_db()
        with new_session() as session:
            seed_demo_data(session)
        logger.info("Manual seeding completed successfully.")
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
