import logging

from sqlalchemy import select, desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.models.user import User
from rightsline.models.points import PointsEarned, PointsDeduction, DeductionType

logger = logging.getLogger(__name__)

# Every chargeable action costs the same
ACTION_COST = 2

ACTION_DESCRIPTIONS = {
    DeductionType.COMMENT_CREATION: 'Payment for creating a comment',
    DeductionType.REPLY_CREATION: 'Payment for creating a reply',
}


class InsufficientPoints(Exception):
    """Raised when a user's balance does not cover an action."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f'Need {required} points but only have {available}')


class LedgerError(Exception):
    """Raised when a deduction could not be recorded."""
    pass


class LedgerService:
    """Points ledger. Balances are always derived from the two record tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, user_id: int | None) -> int:
        """Earned minus spent for a user.

        Any database error is logged and reported as a zero balance so the
        caller degrades to "insufficient points" instead of failing.
        """
        if not user_id:
            return 0

        try:
            earned = await self.db.scalar(
                select(func.coalesce(func.sum(PointsEarned.points), 0))
                .where(PointsEarned.user_id == user_id)
            )
            spent = await self.db.scalar(
                select(func.coalesce(func.sum(PointsDeduction.points_used), 0))
                .where(PointsDeduction.user_id == user_id)
            )
        except SQLAlchemyError:
            logger.error(f'Failed to load points for user {user_id}', exc_info=True)
            return 0

        return int(earned or 0) - int(spent or 0)

    async def has_enough(self, user_id: int, cost: int = ACTION_COST) -> bool:
        return await self.get_balance(user_id) >= cost

    async def lock_user(self, user_id: int) -> None:
        """Serialize concurrent charges for one user until the transaction ends.

        No-op on backends without row locks (SQLite).
        """
        await self.db.execute(
            select(User.id).where(User.id == user_id).with_for_update()
        )

    async def charge_for_action(
        self,
        user_id: int,
        action_type: DeductionType,
    ) -> PointsDeduction:
        """Record the fixed cost of an action. Raises LedgerError on failure."""
        entry = PointsDeduction(
            user_id=user_id,
            points_used=ACTION_COST,
            type=action_type.value,
            description=ACTION_DESCRIPTIONS.get(action_type, action_type.value),
        )
        try:
            self.db.add(entry)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(
                f'Failed to charge user {user_id} for {action_type.value}', exc_info=True
            )
            raise LedgerError(f'Could not charge points for {action_type.value}') from e

        logger.info(f'Charged user {user_id} {ACTION_COST} points ({action_type.value})')
        return entry

    async def award(
        self,
        user_id: int,
        points: int,
        description: str | None = None,
    ) -> PointsEarned:
        """Add an earned record."""
        if points <= 0:
            raise ValueError('Awarded points must be positive')

        entry = PointsEarned(user_id=user_id, points=points, description=description)
        self.db.add(entry)
        await self.db.flush()
        await self.db.refresh(entry)
        return entry

    async def get_history(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PointsDeduction]:
        """Deductions for a user, newest first."""
        result = await self.db.execute(
            select(PointsDeduction)
            .where(PointsDeduction.user_id == user_id)
            .order_by(desc(PointsDeduction.created_at), desc(PointsDeduction.id))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def get_earned(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PointsEarned]:
        """Earned records for a user, newest first."""
        result = await self.db.execute(
            select(PointsEarned)
            .where(PointsEarned.user_id == user_id)
            .order_by(desc(PointsEarned.created_at), desc(PointsEarned.id))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def negative_balances(self) -> list[tuple[int, int]]:
        """(user_id, balance) for every user whose derived balance is below zero."""
        earned = (
            select(
                PointsEarned.user_id.label('user_id'),
                func.sum(PointsEarned.points).label('total'),
            )
            .group_by(PointsEarned.user_id)
            .subquery()
        )
        spent = (
            select(
                PointsDeduction.user_id.label('user_id'),
                func.sum(PointsDeduction.points_used).label('total'),
            )
            .group_by(PointsDeduction.user_id)
            .subquery()
        )
        balance = func.coalesce(earned.c.total, 0) - func.coalesce(spent.c.total, 0)

        result = await self.db.execute(
            select(User.id, balance)
            .outerjoin(earned, earned.c.user_id == User.id)
            .outerjoin(spent, spent.c.user_id == User.id)
            .where(balance < 0)
            .order_by(User.id)
        )
        return [(user_id, int(value)) for user_id, value in result.all()]
