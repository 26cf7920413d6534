"""
Comments connector.

Wraps /comments.php:
- GET    ?recipe_id=<id>                      comments of a recipe, newest first
- POST   {recipe_id, user_id, content}        create
- PUT    ?id=<id> {content}                   edit
- PUT    ?id=<id> {action: "toggle_like", user_id}
- DELETE ?id=<id>&user_id=&user_role=         delete (backend re-checks ownership)
"""

from typing import List, Tuple

from recipe_archive.config import COMMENTS_ENDPOINT
from recipe_archive.errors import NetworkError
from recipe_archive.models import Comment

from .base import BaseConnector


class CommentsConnector(BaseConnector):
    """Connector for recipe comments and likes."""
    endpoint = COMMENTS_ENDPOINT

    def list_comments(self, recipe_id: int) -> List[Comment]:
        body = self._request("GET", params={"recipe_id": recipe_id})
        comments: List[Comment] = []
        for row in body.get("data") or []:
            try:
                comments.append(Comment.from_api(row))
            except (KeyError, TypeError, ValueError) as e:
                raise NetworkError(f"Malformed comment row from backend: {row!r}") from e
        return comments

    def create_comment(self, recipe_id: int, user_id: str, content: str) -> None:
        self._request(
            "POST",
            payload={"recipe_id": recipe_id, "user_id": user_id, "content": content},
        )

    def update_comment(self, comment_id: str, content: str) -> None:
        self._request("PUT", params={"id": comment_id}, payload={"content": content})

    def delete_comment(self, comment_id: str, user_id: str, user_role: str) -> None:
        self._request(
            "DELETE",
            params={"id": comment_id, "user_id": user_id, "user_role": user_role},
        )

    def toggle_like(self, comment_id: str, user_id: str) -> Tuple[int, bool]:
        """
        Toggle the user's like on a comment.

        Returns:
            Tuple of (total likes, whether the user now likes the comment)
        """
        body = self._request(
            "PUT",
            params={"id": comment_id},
            payload={"action": "toggle_like", "user_id": user_id},
        )
        data = body.get("data") or {}
        try:
            return int(data["likes"]), bool(data.get("userLiked"))
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError("Backend did not report like counts after toggling") from e
