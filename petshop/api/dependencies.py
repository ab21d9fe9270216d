"""FastAPI dependency functions shared by the routers."""
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from petshop.services.booking import BookingCoordinator
from petshop.services.catalog import Catalog


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Short-lived session from the app's session factory (tests swap the factory)."""
    async with request.app.state.session_factory() as session:
        yield session


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


def get_coordinator(request: Request) -> BookingCoordinator:
    return request.app.state.coordinator
