import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, desc, and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rightsline.db.database import get_db
from rightsline.models.user import User
from rightsline.models.post import Post, Comment, SavedPost, ReactionType
from rightsline.models.notification import NotificationType
from rightsline.schemas.post import (
    PostCreate, PostUpdate, PostResponse, CommentCreate, CommentUpdate, CommentResponse,
    ReactionCreate, ReactionSummary, ReactionToggleResponse,
)
from rightsline.schemas.user import UserBrief
from rightsline.services.comment_service import (
    CommentService, CommentNotFound, InvalidParentComment, NotCommentAuthor,
)
from rightsline.services.comment_tree import iter_comments
from rightsline.services.ledger_service import InsufficientPoints, LedgerError
from rightsline.services.notification_service import NotificationService
from rightsline.services.reaction_service import ReactionService, ReactionError, summarize

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_brief(user: User) -> UserBrief:
    return UserBrief(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
        country=user.country,
    )


def build_post_response(
    post: Post,
    user_id: int | None = None,
    comments_count: int = 0,
    is_saved: bool = False,
) -> PostResponse:
    """Build PostResponse from a Post loaded with author and reactions."""
    return PostResponse(
        id=post.id,
        author=_user_brief(post.author),
        content=post.content,
        media_url=post.media_url,
        media_type=post.media_type,
        country_code=post.country_code,
        original_post_id=post.original_post_id,
        reactions=ReactionSummary(**summarize(post.reactions, user_id)),
        comments_count=comments_count,
        is_saved=is_saved,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


def build_comment_response(comment: Comment, depth: int = 0, user_id: int | None = None) -> CommentResponse:
    """Build CommentResponse from a Comment loaded with author and reactions."""
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        author=_user_brief(comment.author),
        content=comment.content,
        parent_comment_id=comment.parent_comment_id,
        depth=depth,
        reactions=ReactionSummary(**summarize(comment.reactions, user_id)),
        created_at=comment.created_at,
    )


async def _load_post(db: AsyncSession, post_id: int) -> Post | None:
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.author), selectinload(Post.reactions))
        .where(Post.id == post_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail='User not found')
    return user


async def _comment_counts(db: AsyncSession, post_ids: list[int]) -> dict[int, int]:
    if not post_ids:
        return {}
    result = await db.execute(
        select(Comment.post_id, func.count())
        .where(Comment.post_id.in_(post_ids))
        .group_by(Comment.post_id)
    )
    return {post_id: count for post_id, count in result.all()}


async def _saved_post_ids(db: AsyncSession, post_ids: list[int], user_id: int | None) -> set[int]:
    """Return set of post IDs that the user has saved."""
    if not post_ids or not user_id:
        return set()
    result = await db.execute(
        select(SavedPost.post_id)
        .where(SavedPost.user_id == user_id)
        .where(SavedPost.post_id.in_(post_ids))
    )
    return set(result.scalars().all())


async def _post_response(db: AsyncSession, post_id: int, user_id: int | None) -> PostResponse:
    post = await _load_post(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail='Post not found')
    counts = await _comment_counts(db, [post.id])
    saved = await _saved_post_ids(db, [post.id], user_id)
    return build_post_response(
        post, user_id, comments_count=counts.get(post.id, 0), is_saved=post.id in saved,
    )


# ── Posts ────────────────────────────────────────────────────────────────────

@router.post('', response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Create a new post. Posting is free."""
    await _get_user_or_404(db, user_id)
    if not post_data.content and not post_data.media_url:
        raise HTTPException(status_code=400, detail='Post must have text or media')

    post = Post(
        user_id=user_id,
        content=post_data.content,
        media_url=post_data.media_url,
        media_type=post_data.media_type if post_data.media_url else 'text',
        country_code=post_data.country_code,
    )
    db.add(post)
    await db.flush()
    return await _post_response(db, post.id, user_id)


@router.get('', response_model=list[PostResponse])
async def get_posts(
    author_id: int | None = Query(None),
    country_code: str | None = Query(None, min_length=2, max_length=2),
    user_id: int | None = Query(None, description='Current user for reactions and saves'),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Get posts, newest first."""
    query = (
        select(Post)
        .options(selectinload(Post.author), selectinload(Post.reactions))
        .order_by(desc(Post.created_at), desc(Post.id))
    )
    if author_id:
        query = query.where(Post.user_id == author_id)
    if country_code:
        query = query.where(Post.country_code == country_code.upper())

    result = await db.execute(query.limit(limit).offset(offset))
    posts = list(result.scalars().all())

    post_ids = [p.id for p in posts]
    counts = await _comment_counts(db, post_ids)
    saved = await _saved_post_ids(db, post_ids, user_id)
    return [
        build_post_response(
            p, user_id, comments_count=counts.get(p.id, 0), is_saved=p.id in saved,
        )
        for p in posts
    ]


@router.get('/{post_id}', response_model=PostResponse)
async def get_post(
    post_id: int,
    user_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Get a single post by ID."""
    return await _post_response(db, post_id, user_id)


@router.patch('/{post_id}', response_model=PostResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Update a post (only by author)."""
    post = await db.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail='Post not found')
    if post.user_id != user_id:
        raise HTTPException(status_code=403, detail='Not authorized')

    update_data = post_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(post, field, value)
    if not post.media_url:
        post.media_type = 'text'
    if not post.content and not post.media_url:
        raise HTTPException(status_code=400, detail='Post must have text or media')

    await db.flush()
    return await _post_response(db, post_id, user_id)


@router.delete('/{post_id}', status_code=status.HTTP_200_OK)
async def delete_post(
    post_id: int,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Delete a post (only by author)."""
    post = await db.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail='Post not found')
    if post.user_id != user_id:
        raise HTTPException(status_code=403, detail='Not authorized')

    await db.delete(post)
    return {'status': 'deleted'}


@router.post('/{post_id}/repost', response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def repost(
    post_id: int,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Share a post as a new post of the current user."""
    await _get_user_or_404(db, user_id)
    original = await db.get(Post, post_id)
    if not original:
        raise HTTPException(status_code=404, detail='Post not found')

    post = Post(
        user_id=user_id,
        content=f'Repost: {original.content}',
        media_url=original.media_url,
        media_type=original.media_type,
        country_code=original.country_code,
        original_post_id=original.id,
    )
    db.add(post)
    await db.flush()
    return await _post_response(db, post.id, user_id)


# ── Post Reactions & Saves ───────────────────────────────────────────────────

@router.post('/{post_id}/reactions', response_model=ReactionToggleResponse)
async def react_to_post(
    post_id: int,
    reaction_data: ReactionCreate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Toggle a reaction. Same type again removes it, another type replaces it."""
    user = await _get_user_or_404(db, user_id)
    svc = ReactionService(db)
    try:
        outcome = await svc.toggle_post_reaction(
            post_id, user_id, ReactionType(reaction_data.reaction_type),
            sender_name=user.username,
        )
    except ReactionError:
        raise HTTPException(status_code=404, detail='Post not found')

    reactions = await svc.post_reactions(post_id)
    return ReactionToggleResponse(
        outcome=outcome.value,
        reactions=ReactionSummary(**summarize(reactions, user_id)),
    )


@router.post('/{post_id}/save', status_code=status.HTTP_200_OK)
async def toggle_save(
    post_id: int,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Save or unsave a post."""
    user = await _get_user_or_404(db, user_id)
    post = await db.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail='Post not found')

    result = await db.execute(
        select(SavedPost).where(
            and_(SavedPost.post_id == post_id, SavedPost.user_id == user_id)
        )
    )
    saved = result.scalar_one_or_none()
    if saved:
        await db.delete(saved)
        await db.flush()
        return {'is_saved': False}

    db.add(SavedPost(post_id=post_id, user_id=user_id))
    await db.flush()
    await NotificationService(db).notify(
        post.user_id, user_id, NotificationType.LIKE,
        f'{user.username} saved your post', post_id=post_id,
    )
    return {'is_saved': True}


# ── Comments ─────────────────────────────────────────────────────────────────

@router.get('/{post_id}/comments', response_model=list[CommentResponse])
async def get_comments(
    post_id: int,
    user_id: int | None = Query(None, description='Current user for user_reaction'),
    db: AsyncSession = Depends(get_db),
):
    """Get the comment tree of a post in display order.

    Each comment follows its parent (newest first among siblings) and
    carries its depth, so clients indent by depth instead of nesting.
    """
    post = await db.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail='Post not found')

    tree = await CommentService(db).comment_tree(post_id)
    return [
        build_comment_response(comment, depth, user_id)
        for comment, depth in iter_comments(tree)
    ]


@router.post(
    '/{post_id}/comments', response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Create a comment or a reply. Costs 2 points."""
    svc = CommentService(db)
    try:
        comment = await svc.submit_comment(
            post_id, user_id, comment_data.content,
            parent_comment_id=comment_data.parent_comment_id,
        )
    except CommentNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidParentComment:
        raise HTTPException(status_code=400, detail='Invalid parent comment')
    except InsufficientPoints as e:
        raise HTTPException(
            status_code=402,
            detail=f'Insufficient points. Need {e.required} points.',
        )
    except LedgerError:
        raise HTTPException(status_code=503, detail='Could not charge points, try again')

    author = await db.get(User, user_id)
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        author=_user_brief(author),
        content=comment.content,
        parent_comment_id=comment.parent_comment_id,
        reactions=ReactionSummary(**summarize([], user_id)),
        created_at=comment.created_at,
    )


@router.patch('/{post_id}/comments/{comment_id}', status_code=status.HTTP_200_OK)
async def update_comment(
    post_id: int,
    comment_id: int,
    comment_data: CommentUpdate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Edit a comment (only by author)."""
    comment = await db.get(Comment, comment_id)
    if not comment or comment.post_id != post_id:
        raise HTTPException(status_code=404, detail='Comment not found')

    try:
        comment = await CommentService(db).update_comment(
            comment_id, user_id, comment_data.content,
        )
    except NotCommentAuthor:
        raise HTTPException(status_code=403, detail='Not authorized')
    return {'id': comment.id, 'content': comment.content}


@router.delete('/{post_id}/comments/{comment_id}', status_code=status.HTTP_200_OK)
async def delete_comment(
    post_id: int,
    comment_id: int,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Delete a comment (only by author). No refund."""
    comment = await db.get(Comment, comment_id)
    if not comment or comment.post_id != post_id:
        raise HTTPException(status_code=404, detail='Comment not found')

    try:
        await CommentService(db).delete_comment(comment_id, user_id)
    except NotCommentAuthor:
        raise HTTPException(status_code=403, detail='Not authorized')
    return {'status': 'deleted'}


# ── Comment Reactions ────────────────────────────────────────────────────────

@router.post(
    '/{post_id}/comments/{comment_id}/reactions',
    response_model=ReactionToggleResponse,
)
async def react_to_comment(
    post_id: int,
    comment_id: int,
    reaction_data: ReactionCreate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Toggle a reaction on a comment."""
    user = await _get_user_or_404(db, user_id)
    comment = await db.get(Comment, comment_id)
    if not comment or comment.post_id != post_id:
        raise HTTPException(status_code=404, detail='Comment not found')

    svc = ReactionService(db)
    try:
        outcome = await svc.toggle_comment_reaction(
            comment_id, user_id, ReactionType(reaction_data.reaction_type),
            sender_name=user.username,
        )
    except ReactionError:
        raise HTTPException(status_code=404, detail='Comment not found')

    reactions = await svc.comment_reactions(comment_id)
    return ReactionToggleResponse(
        outcome=outcome.value,
        reactions=ReactionSummary(**summarize(reactions, user_id)),
    )
