"""
Database initialization script.
"""
import logging
from expenseflow.db.session import init_db

# Import all models so SQLAlchemy can register them
from expenseflow.models import (  # noqa: F401
    Company, User, Expense, ApprovalRule, ApprovalStep, ApprovalHistory
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully!")
