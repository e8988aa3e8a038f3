"""Bootstrap a company, an admin user and an API key.

Usage:
    python -m app.seed --company "Acme" --name "Admin" --email admin@example.com

The generated API key is printed once and cannot be recovered later.
"""

import argparse
import asyncio
import logging

from app.config import settings
from app.core.security import issue_api_key
from app.db.repositories import UserRepository
from app.db.session import async_session_maker, close_db
from app.models import Company, User, UserRole

logger = logging.getLogger(__name__)


async def seed(company_name: str, user_name: str, email: str) -> str:
    """Create the records and return the raw API key."""
    async with async_session_maker() as db:
        user_repo = UserRepository(db)
        existing = await user_repo.get_by_email(email)
        if existing:
            raise SystemExit(f"User {email} already exists")

        company = Company(name=company_name)
        db.add(company)
        await db.flush()

        user = User(company_id=company.id, name=user_name, email=email, role=UserRole.ADMIN)
        db.add(user)
        await db.commit()

        _, raw_key = await issue_api_key(
            db, company_id=company.id, user_id=user.id, name="bootstrap"
        )
        logger.info(f"Seeded company {company.id} with admin user {user.id}")
        return raw_key


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL)

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--company", required=True, help="Company name")
    parser.add_argument("--name", required=True, help="Admin user name")
    parser.add_argument("--email", required=True, help="Admin user email")
    args = parser.parse_args()

    async def run() -> str:
        try:
            return await seed(args.company, args.name, args.email)
        finally:
            await close_db()

    raw_key = asyncio.run(run())
    print(f"API key: {raw_key}")


if __name__ == "__main__":
    main()
