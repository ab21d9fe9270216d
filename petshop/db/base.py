# petshop/db/base.py

"""
Imports all the ORM models so Alembic and create_all can discover them.
Whenever you add a new model, import it here.
"""
from petshop.db.models.appointment import Appointment
from petshop.db.models.catalog import AppointmentSettings, DayCareOption, GroomingService
from petshop.db.models.member import Member
from petshop.db.models.slot_load import SlotLoad
from petshop.db.session import engine, Base

async def init_db(bind=None):
    """Create all tables on the given engine (the process engine by default)."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
