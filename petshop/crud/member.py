# petshop/crud/member.py
from typing import Optional
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from petshop.db.models.member import Member
from petshop.schemas.member import MemberCreate


async def get_member(db: AsyncSession, member_id: int) -> Optional[Member]:
    return await db.get(Member, member_id)


async def get_member_by_email(db: AsyncSession, email: str) -> Optional[Member]:
    stmt = sa.select(Member).where(Member.email == email.strip().lower())
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def member_exists(db: AsyncSession, email: str) -> bool:
    stmt = sa.select(sa.literal(True)).where(Member.email == email.strip().lower()).limit(1)
    res = await db.execute(stmt)
    return res.scalar_one_or_none() is not None


async def create_member(db: AsyncSession, data: MemberCreate) -> Member:
    """
    Insert a new member. If a concurrent request already registered the same
    email, return the existing member instead of raising on UNIQUE constraint.
    """
    obj = Member(full_name=data.full_name, email=data.email, phone=data.phone)
    db.add(obj)
    try:
        await db.commit()
        await db.refresh(obj)
        return obj
    except IntegrityError:
        await db.rollback()
        existing = await get_member_by_email(db, data.email)
        if existing:
            return existing
        raise
