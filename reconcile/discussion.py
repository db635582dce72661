"""Local discussion tree: posts -> comments -> replies.

Merge rules, applied to relay events and REST responses alike:

- a "created" event for an id already present is ignored, and one carrying
  the temp id of a provisional entry replaces that entry in place, so an
  optimistic insert followed by its own echo renders once;
- "updated" events replace content fields of a known entity and are dropped
  for unknown ids (the next fetch brings them in);
- deleting a post or comment removes its whole subtree;
- like lists are replaced from the payload, never incremented locally.
"""

import uuid
from typing import Iterable, Optional

from realtime.events import CommentDeleted, CommentPayload, LikeToggled, PostDeleted, PostPayload, ReplyPayload
from schemas.discussion import Comment, Post, Reply

TEMP_PREFIX = "tmp-"


def temp_id() -> str:
    return TEMP_PREFIX + uuid.uuid4().hex[:12]


class DiscussionBoard:
    def __init__(self):
        # Newest first, matching the REST listing order
        self.posts: list[Post] = []
        self._provisional: set[str] = set()

    # -- lookups --------------------------------------------------------------

    def find_post(self, post_id: str) -> Optional[Post]:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None

    def find_comment(self, post_id: str, comment_id: str) -> Optional[Comment]:
        post = self.find_post(post_id)
        if post is None:
            return None
        for comment in post.comments:
            if comment.id == comment_id:
                return comment
        return None

    def find_reply(self, post_id: str, comment_id: str, reply_id: str) -> Optional[Reply]:
        comment = self.find_comment(post_id, comment_id)
        if comment is None:
            return None
        for reply in comment.replies:
            if reply.id == reply_id:
                return reply
        return None

    def is_provisional(self, entity_id: str) -> bool:
        return entity_id in self._provisional

    def __len__(self) -> int:
        return len(self.posts)

    # -- full refresh ---------------------------------------------------------

    def load_posts(self, posts: Iterable[Post]) -> None:
        """Replace state from a REST fetch, keeping posts still awaiting confirmation."""
        pending = [p for p in self.posts if p.id in self._provisional]
        self.posts = pending + [p.model_copy(deep=True) for p in posts]

    # -- optimistic updates ---------------------------------------------------

    def add_provisional_post(self, session_id: str, author: str, content: str) -> str:
        post = Post(id=temp_id(), session_id=session_id, author=author, content=content)
        self.posts.insert(0, post)
        self._provisional.add(post.id)
        return post.id

    def confirm_post(self, provisional_id: str, post: Post) -> None:
        """Swap a provisional post for the durable one returned by the REST call."""
        self._provisional.discard(provisional_id)
        index = next((i for i, p in enumerate(self.posts) if p.id == provisional_id), None)
        if index is None:
            self.on_post_created(PostPayload(post=post))
        elif self.find_post(post.id) is not None:
            # Relay echo got here before the REST response
            del self.posts[index]
        else:
            self.posts[index] = post.model_copy(deep=True)

    def discard_provisional_post(self, provisional_id: str) -> None:
        self._provisional.discard(provisional_id)
        self.posts = [p for p in self.posts if p.id != provisional_id]

    def add_provisional_comment(self, post_id: str, author: str, content: str) -> Optional[str]:
        post = self.find_post(post_id)
        if post is None:
            return None
        comment = Comment(id=temp_id(), author=author, content=content)
        post.comments.append(comment)
        self._provisional.add(comment.id)
        return comment.id

    def confirm_comment(self, post_id: str, provisional_id: str, comment: Comment) -> None:
        self._provisional.discard(provisional_id)
        post = self.find_post(post_id)
        if post is None:
            return
        index = next((i for i, c in enumerate(post.comments) if c.id == provisional_id), None)
        if index is None:
            self.on_comment_created(CommentPayload(post_id=post_id, comment=comment))
        elif self.find_comment(post_id, comment.id) is not None:
            del post.comments[index]
        else:
            post.comments[index] = comment.model_copy(deep=True)

    def discard_provisional_comment(self, post_id: str, provisional_id: str) -> None:
        self._provisional.discard(provisional_id)
        post = self.find_post(post_id)
        if post is not None:
            post.comments = [c for c in post.comments if c.id != provisional_id]

    # -- relay events ---------------------------------------------------------

    def on_post_created(self, payload: PostPayload) -> bool:
        if self.find_post(payload.post.id) is not None:
            return False
        post = payload.post.model_copy(deep=True)
        if payload.client_id in self._provisional:
            index = next((i for i, p in enumerate(self.posts) if p.id == payload.client_id), None)
            if index is not None:
                self._provisional.discard(payload.client_id)
                self.posts[index] = post
                return True
        self.posts.insert(0, post)
        return True

    def on_post_updated(self, payload: PostPayload) -> bool:
        post = self.find_post(payload.post.id)
        if post is None:
            return False
        post.content = payload.post.content
        post.link_preview = payload.post.link_preview
        return True

    def on_post_deleted(self, payload: PostDeleted) -> bool:
        before = len(self.posts)
        self.posts = [p for p in self.posts if p.id != payload.post_id]
        return len(self.posts) != before

    def on_comment_created(self, payload: CommentPayload) -> bool:
        post = self.find_post(payload.post_id)
        if post is None or self.find_comment(payload.post_id, payload.comment.id) is not None:
            return False
        comment = payload.comment.model_copy(deep=True)
        if payload.client_id in self._provisional:
            index = next((i for i, c in enumerate(post.comments) if c.id == payload.client_id), None)
            if index is not None:
                self._provisional.discard(payload.client_id)
                post.comments[index] = comment
                return True
        post.comments.append(comment)
        return True

    def on_comment_updated(self, payload: CommentPayload) -> bool:
        comment = self.find_comment(payload.post_id, payload.comment.id)
        if comment is None:
            return False
        comment.content = payload.comment.content
        return True

    def on_comment_deleted(self, payload: CommentDeleted) -> bool:
        post = self.find_post(payload.post_id)
        if post is None:
            return False
        before = len(post.comments)
        # Replies live inside the comment and go with it
        post.comments = [c for c in post.comments if c.id != payload.comment_id]
        return len(post.comments) != before

    def on_reply_created(self, payload: ReplyPayload) -> bool:
        comment = self.find_comment(payload.post_id, payload.comment_id)
        if comment is None or any(r.id == payload.reply.id for r in comment.replies):
            return False
        comment.replies.append(payload.reply.model_copy())
        return True

    def on_reply_updated(self, payload: ReplyPayload) -> bool:
        reply = self.find_reply(payload.post_id, payload.comment_id, payload.reply.id)
        if reply is None:
            return False
        reply.content = payload.reply.content
        return True

    def on_like_toggled(self, payload: LikeToggled) -> bool:
        if payload.comment_id is None:
            target = self.find_post(payload.post_id)
        else:
            target = self.find_comment(payload.post_id, payload.comment_id)
        if target is None:
            return False
        target.likes = list(payload.likes)
        return True
