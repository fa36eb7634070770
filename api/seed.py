"""Seed script: wipe all data and create fresh test accounts ready for testing.

Usage (from the api directory):
    python seed.py
"""
import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.db.database import engine, async_session, init_db
from rightsline.models.user import User
from rightsline.models.post import Post
from rightsline.services.ledger_service import LedgerService


# Test accounts to create
TEST_USERS = [
    {
        'username': 'olena',
        'country': 'UA',
        'bio': 'Test user, reporter',
        'points': 50,
    },
    {
        'username': 'marek',
        'country': 'PL',
        'bio': 'Test user, commenter',
        'points': 10,
    },
    {
        'username': 'moderator',
        'country': 'UA',
        'bio': 'Test user, reviews complaints',
        'points': 0,
    },
]


async def wipe_all(db: AsyncSession):
    """Truncate all tables in dependency-safe order."""
    tables = [
        'notifications',
        'complaints',
        'saved_posts',
        'comment_reactions',
        'reactions',
        'comments',
        'posts',
        'user_points_deductions',
        'user_points',
        'follows',
        'users',
    ]
    for table in tables:
        await db.execute(text(f'TRUNCATE TABLE {table} RESTART IDENTITY CASCADE'))
    await db.commit()
    print('✓ All tables wiped')


async def create_users(db: AsyncSession):
    """Create test users with initial earned points."""
    ledger = LedgerService(db)
    for u in TEST_USERS:
        user = User(username=u['username'], country=u['country'], bio=u['bio'])
        db.add(user)
        await db.flush()
        await db.refresh(user)

        if u['points']:
            await ledger.award(user.id, u['points'], 'Seed points')

        print(f'  ✓ @{u["username"]}: {u["points"]} points, id={user.id}')

        if u['username'] == 'olena':
            db.add(Post(user_id=user.id, content='Welcome to Rightsline', country_code='UA'))

    await db.commit()


async def main():
    print()
    print('=' * 50)
    print('  Rightsline Seed Script')
    print('=' * 50)
    print()

    await init_db()
    async with async_session() as db:
        print('[1/2] Wiping all data...')
        await wipe_all(db)

        print('[2/2] Creating test users...')
        await create_users(db)

    await engine.dispose()

    print()
    print('Done! Ready for testing.')
    print()


if __name__ == '__main__':
    asyncio.run(main())
