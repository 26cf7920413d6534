"""
Comment threads.

A CommentThread holds the comments of one recipe. Adding, editing and deleting are
confirm-then-apply and reload the thread from the backend afterwards; liking patches
the single comment from the counts the backend reports.
"""

import logging
from typing import List, Optional

from .connectors.comments_connector import CommentsConnector
from .errors import NotFoundError, PermissionDeniedError, ValidationError
from .models import Comment
from .session import Session

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500


def _validate_content(content: Optional[str]) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise ValidationError("Comment cannot be empty")
    if len(cleaned) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment is longer than {MAX_COMMENT_LENGTH} characters")
    return cleaned


class CommentThread:
    """Comments of a single recipe, newest first."""

    def __init__(self, recipe_id: int, connector: CommentsConnector, session: Session) -> None:
        self.recipe_id = recipe_id
        self.connector = connector
        self.session = session
        self.comments: List[Comment] = []

    def __len__(self) -> int:
        return len(self.comments)

    def get(self, comment_id: str) -> Optional[Comment]:
        return next((c for c in self.comments if c.id == comment_id), None)

    def _require(self, comment_id: str) -> Comment:
        comment = self.get(comment_id)
        if comment is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        return comment

    def load(self) -> List[Comment]:
        self.comments = self.connector.list_comments(self.recipe_id)
        return self.comments

    def add(self, content: str) -> List[Comment]:
        """
        Post a comment as the session user.

        Raises:
            PermissionDeniedError: For guests
            ValidationError: If the content is empty or too long
        """
        if not self.session.can_comment():
            raise PermissionDeniedError("Guests may not comment")
        cleaned = _validate_content(content)
        self.connector.create_comment(self.recipe_id, self.session.user_id, cleaned)
        return self.load()

    def edit(self, comment_id: str, content: str) -> List[Comment]:
        comment = self._require(comment_id)
        if not self.session.can_modify_comment(comment):
            raise PermissionDeniedError("You may only edit your own comments")
        cleaned = _validate_content(content)
        self.connector.update_comment(comment_id, cleaned)
        return self.load()

    def delete(self, comment_id: str) -> List[Comment]:
        comment = self._require(comment_id)
        if not self.session.can_modify_comment(comment):
            raise PermissionDeniedError("You may only delete your own comments")
        self.connector.delete_comment(comment_id, self.session.user_id, self.session.role.value)
        logger.info("Deleted comment %s on recipe %d", comment_id, self.recipe_id)
        return self.load()

    def toggle_like(self, comment_id: str) -> Comment:
        """
        Like or unlike a comment.

        Returns:
            The comment with likes and liked_by as reported by the backend
        """
        if not self.session.can_comment():
            raise PermissionDeniedError("Guests may not like comments")
        comment = self._require(comment_id)
        likes, user_liked = self.connector.toggle_like(comment_id, self.session.user_id)

        liked_by = [u for u in comment.liked_by if u != self.session.user_id]
        if user_liked:
            liked_by.append(self.session.user_id)
        updated = comment.model_copy(update={"likes": likes, "liked_by": liked_by})
        self.comments = [updated if c.id == comment_id else c for c in self.comments]
        return updated
