"""
Unit of Work Pattern - one database transaction per logical booking operation

Architecture:
- UoW owns the session lifecycle (opened on enter, closed on exit)
- UoW owns commit/rollback; leaving the block without commit rolls back
- Repositories receive the UoW's shared session
- Use cases coordinate several repositories inside a single UoW
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


if TYPE_CHECKING:
    from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
    from src.service.booking.app.interface.i_discount_command_repo import IDiscountCommandRepo
    from src.service.booking.app.interface.i_discount_query_repo import IDiscountQueryRepo
    from src.service.booking.app.interface.i_payment_query_repo import IPaymentQueryRepo
    from src.service.booking.app.interface.i_slot_capacity_store import ISlotCapacityStore


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the Booking Service

    Responsibilities:
    - Manage database session lifecycle
    - Coordinate transactions across multiple repositories
    - Provide commit/rollback interface

    Usage:
        async with uow_factory() as uow:
            await uow.slot_capacity_store.lock_capacity(...)
            await uow.booking_command_repo.create(...)
            await uow.commit()
    """

    slot_capacity_store: ISlotCapacityStore
    booking_command_repo: IBookingCommandRepo
    discount_query_repo: IDiscountQueryRepo
    discount_command_repo: IDiscountCommandRepo
    payment_query_repo: IPaymentQueryRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    A fresh instance is created per operation (see Container.unit_of_work),
    so the session it opens never outlives one transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self):
        from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
            BookingCommandRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.discount_command_repo_impl import (
            DiscountCommandRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.discount_query_repo_impl import (
            DiscountQueryRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.payment_query_repo_impl import (
            PaymentQueryRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.slot_capacity_store_impl import (
            SlotCapacityStoreImpl,
        )

        self.session = self.session_factory()

        # Repositories share the session, hence the transaction
        self.slot_capacity_store = SlotCapacityStoreImpl(session=self.session)
        self.booking_command_repo = BookingCommandRepoImpl(session=self.session)
        self.discount_query_repo = DiscountQueryRepoImpl(session=self.session)
        self.discount_command_repo = DiscountCommandRepoImpl(session=self.session)
        self.payment_query_repo = PaymentQueryRepoImpl(session=self.session)

        return await super().__aenter__()

    async def __aexit__(self, *args):
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self):
        assert self.session is not None, 'UnitOfWork used outside of `async with`'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]
