# petshop/api/routes/members.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.api.dependencies import get_db
from petshop.crud.member import create_member
from petshop.schemas.member import MemberCreate, MemberOut

router = APIRouter(prefix="/members", tags=["members"])


@router.post("", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
async def register_member_ep(payload: MemberCreate, db: AsyncSession = Depends(get_db)):
    # registering an email twice returns the existing account
    return await create_member(db, payload)
