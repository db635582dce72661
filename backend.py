import redis
import json
import uuid
from datetime import datetime
from typing import Optional
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB
from redis_keys import REDIS_POSTS_KEY, REDIS_ATTENDANCE_KEY
from schemas.attendance import AttendanceRecord
from schemas.discussion import Post, Comment, Reply, LinkPreview
from logging_config import get_logger

logger = get_logger(__name__)


class NotFound(LookupError):
    """Requested post, comment or reply does not exist."""


def new_id() -> str:
    return uuid.uuid4().hex


def _toggle(likes: list[str], user_id: str) -> list[str]:
    if user_id in likes:
        return [u for u in likes if u != user_id]
    return likes + [user_id]


class RedisBackend:
    """Durable store for discussion posts and attendance records.

    Each post is kept as one JSON document (post -> comments -> replies) in a
    per-session hash, so every write is a read-modify-write of that document.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        if client is None:
            logger.info(f"Initializing RedisBackend with connection to {REDIS_HOST}:{REDIS_PORT}")
            client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, db=REDIS_DB, decode_responses=True)
        self.redis_client = client

    def ping(self) -> bool:
        try:
            self.redis_client.ping()
            logger.info("Redis client connected successfully")
            return True
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}", exc_info=True)
            raise

    # -- posts ----------------------------------------------------------------

    def _save_post(self, post: Post) -> Post:
        key = REDIS_POSTS_KEY.format(session_id=post.session_id)
        self.redis_client.hset(key, post.id, post.model_dump_json())
        return post

    def list_posts(self, session_id: str) -> list[Post]:
        key = REDIS_POSTS_KEY.format(session_id=session_id)
        raw = self.redis_client.hvals(key)
        posts = [Post.model_validate_json(v) for v in raw]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        logger.debug(f"Session {session_id} has {len(posts)} posts")
        return posts

    def get_post(self, session_id: str, post_id: str) -> Post:
        key = REDIS_POSTS_KEY.format(session_id=session_id)
        raw = self.redis_client.hget(key, post_id)
        if raw is None:
            raise NotFound(f"Post {post_id} not found")
        return Post.model_validate_json(raw)

    def create_post(self, session_id: str, author: str, content: str, link_preview: Optional[LinkPreview] = None) -> Post:
        post = Post(id=new_id(), session_id=session_id, author=author, content=content.strip(), link_preview=link_preview)
        self._save_post(post)
        logger.info(f"Post {post.id} created in session {session_id} by {author}")
        return post

    def update_post(self, session_id: str, post_id: str, content: str, link_preview: Optional[LinkPreview] = None) -> Post:
        post = self.get_post(session_id, post_id)
        post.content = content.strip()
        if link_preview is not None:
            post.link_preview = link_preview
        return self._save_post(post)

    def delete_post(self, session_id: str, post_id: str) -> None:
        key = REDIS_POSTS_KEY.format(session_id=session_id)
        if not self.redis_client.hdel(key, post_id):
            raise NotFound(f"Post {post_id} not found")
        logger.info(f"Post {post_id} deleted from session {session_id}")

    def toggle_post_like(self, session_id: str, post_id: str, user_id: str) -> list[str]:
        post = self.get_post(session_id, post_id)
        post.likes = _toggle(post.likes, user_id)
        self._save_post(post)
        return post.likes

    # -- comments and replies -------------------------------------------------

    @staticmethod
    def _find_comment(post: Post, comment_id: str) -> Comment:
        for comment in post.comments:
            if comment.id == comment_id:
                return comment
        raise NotFound(f"Comment {comment_id} not found")

    def add_comment(self, session_id: str, post_id: str, author: str, content: str) -> Comment:
        post = self.get_post(session_id, post_id)
        comment = Comment(id=new_id(), author=author, content=content.strip())
        post.comments.append(comment)
        self._save_post(post)
        logger.info(f"Comment {comment.id} added to post {post_id}")
        return comment

    def update_comment(self, session_id: str, post_id: str, comment_id: str, content: str) -> Comment:
        post = self.get_post(session_id, post_id)
        comment = self._find_comment(post, comment_id)
        comment.content = content.strip()
        self._save_post(post)
        return comment

    def delete_comment(self, session_id: str, post_id: str, comment_id: str) -> None:
        post = self.get_post(session_id, post_id)
        self._find_comment(post, comment_id)
        post.comments = [c for c in post.comments if c.id != comment_id]
        self._save_post(post)
        logger.info(f"Comment {comment_id} deleted from post {post_id}")

    def toggle_comment_like(self, session_id: str, post_id: str, comment_id: str, user_id: str) -> list[str]:
        post = self.get_post(session_id, post_id)
        comment = self._find_comment(post, comment_id)
        comment.likes = _toggle(comment.likes, user_id)
        self._save_post(post)
        return comment.likes

    def add_reply(self, session_id: str, post_id: str, comment_id: str, author: str, content: str) -> Reply:
        post = self.get_post(session_id, post_id)
        comment = self._find_comment(post, comment_id)
        reply = Reply(id=new_id(), author=author, content=content.strip())
        comment.replies.append(reply)
        self._save_post(post)
        logger.info(f"Reply {reply.id} added to comment {comment_id}")
        return reply

    def update_reply(self, session_id: str, post_id: str, comment_id: str, reply_id: str, content: str) -> Reply:
        post = self.get_post(session_id, post_id)
        comment = self._find_comment(post, comment_id)
        for reply in comment.replies:
            if reply.id == reply_id:
                reply.content = content.strip()
                self._save_post(post)
                return reply
        raise NotFound(f"Reply {reply_id} not found")

    # -- attendance -----------------------------------------------------------

    def list_attendance(self, session_id: str) -> list[AttendanceRecord]:
        key = REDIS_ATTENDANCE_KEY.format(session_id=session_id)
        records = [AttendanceRecord.model_validate(json.loads(v)) for v in self.redis_client.hvals(key)]
        records.sort(key=lambda r: r.student_id)
        return records

    def set_attendance(self, session_id: str, student_id: str, status: str) -> AttendanceRecord:
        key = REDIS_ATTENDANCE_KEY.format(session_id=session_id)
        record = AttendanceRecord(student_id=student_id, status=status, timestamp=datetime.now().isoformat())
        self.redis_client.hset(key, student_id, record.model_dump_json())
        logger.info(f"Attendance for {student_id} in session {session_id} set to {status}")
        return record
