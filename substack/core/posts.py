# substack/core/posts.py
from typing import List, Optional

from supabase import Client

from substack.config import LIKES_TABLE, POSTS_TABLE
from substack.core.models import Post
from substack.utils.logger import get_logger

logger = get_logger(__name__)

POST_COLUMNS = "*, is_liked_by_me:likes(user_id)"


def create_post(supabase_client: Client, user_id: str, content: str,
                media_url: Optional[str] = None, media_type: Optional[str] = None) -> Optional[Post]:
    """Inserts a post and returns it, or None if the insert failed."""
    try:
        response = supabase_client.table(POSTS_TABLE).insert({
            "user_id": user_id,
            "content": content,
            "media_url": media_url,
            "media_type": media_type,
        }).execute()
    except Exception as e:
        logger.error(f"Failed to create post: {e}")
        return None
    if not response.data:
        logger.warning("Post insert returned no row")
        return None
    return Post.from_row(response.data[0])


def fetch_posts(supabase_client: Client, limit: int = 20, offset: int = 0) -> List[Post]:
    """One page of the feed, newest first."""
    try:
        response = (
            supabase_client.table(POSTS_TABLE)
            .select(POST_COLUMNS)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to fetch posts: {e}")
        return []

    posts = []
    for row in response.data or []:
        try:
            posts.append(Post.from_row(row))
        except (KeyError, ValueError) as e:
            logger.warning(f"Skipping malformed post row: {e}")
    return posts


def toggle_like(supabase_client: Client, post: Post, user_id: str) -> bool:
    """
    Likes or unlikes `post` for `user_id` and updates its local counters.

    Returns True on success. On failure the post is left unchanged.
    """
    try:
        if post.is_liked_by_me:
            (
                supabase_client.table(LIKES_TABLE)
                .delete()
                .eq("post_id", post.id)
                .eq("user_id", user_id)
                .execute()
            )
        else:
            supabase_client.table(LIKES_TABLE).insert({"user_id": user_id, "post_id": post.id}).execute()
    except Exception as e:
        logger.error(f"Failed to toggle like on post {post.id}: {e}")
        return False

    post.likes_count = max(0, post.likes_count + (-1 if post.is_liked_by_me else 1))
    post.is_liked_by_me = not post.is_liked_by_me
    return True
