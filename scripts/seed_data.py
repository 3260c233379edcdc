import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from dealflow.auth.jwt import create_access_token
from dealflow.core.config import get_config
from dealflow.database.db import get_db_session
from dealflow.database.init_db import init_db
from dealflow.models import Tenant, User
from dealflow.models.enums import UserRole
from dealflow.services.deal_service import DealService
from dealflow.services.lead_service import LeadService

DEMO_USERS = [
    ("admin@dealflow.app", "Avery Admin", UserRole.ADMIN.value),
    ("sales@dealflow.app", "Sam Seller", UserRole.SALES.value),
]


def seed_demo_data():
    config = get_config()
    init_db()
    with get_db_session() as db:
        tenant = db.query(Tenant).filter(Tenant.tenant_key == config.DEFAULT_TENANT_KEY).one()

        users = []
        for email, full_name, role in DEMO_USERS:
            user = db.query(User).filter(User.tenant_id == tenant.id, User.email == email).first()
            if user is None:
                user = User(tenant_id=tenant.id, email=email, full_name=full_name, role=role)
                db.add(user)
                db.commit()
                print(f"Seeded user: {full_name} ({role})")
            users.append(user)
        admin, seller = users

        leads = LeadService(db)
        lead = leads.find_by_email(tenant.id, "demo@techcorp.com")
        if lead is None:
            lead = leads.create_lead(
                tenant.id,
                {"name": "Sarah Connor", "email": "demo@techcorp.com", "company": "TechCorp Inc.", "owner_id": seller.id},
                actor_id=admin.id,
            )
            DealService(db).create_deal(
                tenant.id, name="TechCorp cloud migration", lead_id=lead.id, actor_id=admin.id, value=48000, owner_id=seller.id
            )
            print(f"Seeded lead and deal for {lead.company}")
        else:
            print("Seed lead already exists.")

        token = create_access_token(
            user_id=admin.id,
            tenant_id=tenant.id,
            role=admin.role,
            secret=config.JWT_SECRET,
            name=admin.full_name,
            ttl_minutes=config.JWT_ACCESS_TTL_MINUTES,
        )
        print(f"Admin bearer token: {token}")


if __name__ == "__main__":
    seed_demo_data()
