"""
Database seeding script for the first admin.

Role changes are admin-only, so the first admin has to be created
out of band. Pass the email the admin signs in with:

    python backend/seed_users.py admin@example.com
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db import session as db_session
from backend.app.db.session import init_db, close_db
from backend.app.models.user import User
from backend.app.models.audit_log import AuditLog
from backend.app.models.rider import Rider
from backend.app.models.parcel import Parcel
from backend.app.models.tracking_log import TrackingLog
from backend.app.models.payment_receipt import PaymentReceipt
from backend.app.models.enums import UserRole
from sqlalchemy import select


async def seed_admin(email: str):
    """Create ``email`` as an admin, or promote the existing account."""
    await init_db()
    try:
        async with db_session.AsyncSessionLocal() as db:
            print("🌱 Starting admin seeding...")

            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()

            if user and user.role == UserRole.ADMIN:
                print(f"ℹ️  {email} is already an admin, skipping seeding")
                return

            if user:
                user.role = UserRole.ADMIN
                print(f"✅ Promoted {email} to ADMIN")
            else:
                db.add(User(email=email, display_name="Administrator", role=UserRole.ADMIN))
                print(f"✅ Created ADMIN user {email}")

            await db.commit()
            print("\n🎉 Admin seeding completed successfully!")
    finally:
        await close_db()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: seed_users.py <admin-email>")
        sys.exit(1)
    asyncio.run(seed_admin(sys.argv[1]))
