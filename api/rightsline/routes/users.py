from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.db.database import get_db
from rightsline.models.user import User, Follow
from rightsline.models.notification import NotificationType
from rightsline.schemas.user import UserCreate, UserUpdate, UserResponse, UserBrief
from rightsline.schemas.points import BalanceResponse, DeductionEntry, EarnedEntry
from rightsline.schemas.notification import NotificationResponse
from rightsline.services.ledger_service import LedgerService, ACTION_COST
from rightsline.services.notification_service import NotificationService

router = APIRouter()


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    return user


@router.get('', response_model=list[UserBrief])
async def list_users(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List users (for dev user selection)."""
    result = await db.execute(select(User).order_by(User.id).limit(limit))
    return result.scalars().all()


@router.get('/search', response_model=list[UserBrief])
async def search_users(
    q: str = Query(..., min_length=1, max_length=50),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Search users by username prefix."""
    query = q.lstrip('@').lower()
    result = await db.execute(
        select(User)
        .where(func.lower(User.username).like(f'{query}%'))
        .order_by(User.username)
        .limit(limit)
    )
    return result.scalars().all()


@router.post('', response_model=UserBrief, status_code=status.HTTP_201_CREATED)
async def create_user(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a new user. New users start with no points."""
    existing = await db.execute(select(User).where(User.username == user_data.username))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail='Username already taken')

    user = User(
        username=user_data.username,
        profile_picture=user_data.profile_picture,
        country=user_data.country.upper() if user_data.country else None,
        city=user_data.city,
        bio=user_data.bio,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@router.get('/{user_id}', response_model=UserResponse)
async def get_user(
    user_id: int,
    current_user_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Get user by ID with follow counts and points balance."""
    user = await _get_user_or_404(db, user_id)

    followers_count = await db.scalar(
        select(func.count()).where(Follow.following_id == user_id)
    )
    following_count = await db.scalar(
        select(func.count()).where(Follow.follower_id == user_id)
    )

    is_following = False
    if current_user_id:
        follow = await db.execute(
            select(Follow).where(
                and_(Follow.follower_id == current_user_id, Follow.following_id == user_id)
            )
        )
        is_following = follow.scalar_one_or_none() is not None

    return UserResponse(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
        country=user.country,
        city=user.city,
        bio=user.bio,
        created_at=user.created_at,
        points=await LedgerService(db).get_balance(user.id),
        followers_count=followers_count or 0,
        following_count=following_count or 0,
        is_following=is_following,
    )


@router.patch('/{user_id}', response_model=UserBrief)
async def update_user(
    user_id: int, user_data: UserUpdate, db: AsyncSession = Depends(get_db)
):
    """Update user profile."""
    user = await _get_user_or_404(db, user_id)

    update_data = user_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(user, field, value)

    await db.flush()
    await db.refresh(user)
    return user


# --- Follows ---

@router.post('/{user_id}/follow', status_code=status.HTTP_201_CREATED)
async def follow_user(
    user_id: int,
    follower_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Follow a user."""
    if user_id == follower_id:
        raise HTTPException(status_code=400, detail='Cannot follow yourself')

    await _get_user_or_404(db, user_id)
    follower = await _get_user_or_404(db, follower_id)

    existing = await db.execute(
        select(Follow).where(
            and_(Follow.follower_id == follower_id, Follow.following_id == user_id)
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail='Already following')

    db.add(Follow(follower_id=follower_id, following_id=user_id))
    await db.flush()
    await NotificationService(db).notify(
        user_id, follower_id, NotificationType.FOLLOW,
        f'{follower.username} started following you',
    )
    return {'status': 'followed'}


@router.delete('/{user_id}/follow', status_code=status.HTTP_200_OK)
async def unfollow_user(
    user_id: int,
    follower_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Unfollow a user."""
    result = await db.execute(
        select(Follow).where(
            and_(Follow.follower_id == follower_id, Follow.following_id == user_id)
        )
    )
    follow = result.scalar_one_or_none()
    if not follow:
        raise HTTPException(status_code=404, detail='Not following this user')

    await db.delete(follow)
    return {'status': 'unfollowed'}


@router.get('/{user_id}/followers', response_model=list[UserBrief])
async def get_followers(
    user_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Get user's followers."""
    result = await db.execute(
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .limit(limit)
        .offset(offset)
    )
    return result.scalars().all()


@router.get('/{user_id}/following', response_model=list[UserBrief])
async def get_following(
    user_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Get users that this user follows."""
    result = await db.execute(
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id)
        .limit(limit)
        .offset(offset)
    )
    return result.scalars().all()


# --- Points ---

@router.get('/{user_id}/points', response_model=BalanceResponse)
async def get_points(user_id: int, db: AsyncSession = Depends(get_db)):
    """Derived points balance (earned minus spent)."""
    await _get_user_or_404(db, user_id)
    balance = await LedgerService(db).get_balance(user_id)
    return BalanceResponse(user_id=user_id, balance=balance, comment_cost=ACTION_COST)


@router.get('/{user_id}/points/history', response_model=list[DeductionEntry])
async def get_points_history(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Get user's spend history."""
    await _get_user_or_404(db, user_id)
    return await LedgerService(db).get_history(user_id, limit, offset)


@router.get('/{user_id}/points/earned', response_model=list[EarnedEntry])
async def get_points_earned(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Get user's earned points."""
    await _get_user_or_404(db, user_id)
    return await LedgerService(db).get_earned(user_id, limit, offset)


# --- Notifications ---

@router.get('/{user_id}/notifications', response_model=list[NotificationResponse])
async def get_notifications(
    user_id: int,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Get user's notifications, newest first."""
    await _get_user_or_404(db, user_id)
    return await NotificationService(db).list_for_user(user_id, unread_only, limit, offset)


@router.post('/{user_id}/notifications/read', status_code=status.HTTP_200_OK)
async def mark_notifications_read(user_id: int, db: AsyncSession = Depends(get_db)):
    """Mark every notification of the user as read."""
    await _get_user_or_404(db, user_id)
    updated = await NotificationService(db).mark_all_read(user_id)
    return {'updated': updated}
