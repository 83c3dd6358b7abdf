"""
Check the PostgreSQL connection and seed reference data for the service desk.
Run after `alembic upgrade head`: python scripts/init_postgres.py

Requires: PostgreSQL installed and running. Create user and database:

  sudo -u postgres psql
  CREATE USER servicedesk WITH PASSWORD 'servicedesk';
  CREATE DATABASE servicedesk_db OWNER servicedesk;
  GRANT ALL PRIVILEGES ON DATABASE servicedesk_db TO servicedesk;
  \q
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from servicedesk.config import settings
from servicedesk.core.database import SessionLocal, engine
from servicedesk.services.permission_service import permission_service
from servicedesk.services.user_service import user_service


def main():
    url = settings.get_database_url()
    if not url.startswith("postgresql"):
        print("Database URL is not PostgreSQL. Skipping.")
        return
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("PostgreSQL connection OK. Database exists.")
    except SQLAlchemyError as e:
        print(f"Cannot connect to PostgreSQL: {e}")
        print("\nCreate database first:")
        print("  psql -U postgres -c \"CREATE USER servicedesk WITH PASSWORD 'servicedesk';\"")
        print("  psql -U postgres -c \"CREATE DATABASE servicedesk_db OWNER servicedesk;\"")
        print("  psql -U postgres -c \"GRANT ALL PRIVILEGES ON DATABASE servicedesk_db TO servicedesk;\"")
        sys.exit(1)

    db = SessionLocal()
    try:
        created_permissions = permission_service.seed_permission_catalog(db)
        created_roles = permission_service.seed_default_roles(db)
        admin = user_service.ensure_admin_user(
            db,
            email=settings.ADMIN_EMAIL,
            username=settings.ADMIN_USERNAME,
            password=settings.ADMIN_PASSWORD,
        )
    finally:
        db.close()

    print(f"Seeded {created_permissions} permissions and {created_roles} roles.")
    if admin:
        print(f"Created admin user {admin.username}.")


if __name__ == "__main__":
    main()
