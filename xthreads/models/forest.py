"""Thread forest result models."""

from collections.abc import Iterator

from pydantic import BaseModel

from xthreads.models.post import CanonicalPost


class ConversationThread(BaseModel):
    """All root threads of one conversation, oldest first."""

    conversation_id: str
    threads: list[CanonicalPost] = []


class ThreadForest(BaseModel):
    """Ordered output of one reconstruction run."""

    conversations: list[ConversationThread] = []
    standalone: list[CanonicalPost] = []

    @property
    def is_empty(self) -> bool:
        return not self.conversations and not self.standalone

    def roots(self) -> Iterator[tuple[str | None, CanonicalPost]]:
        """Yield ``(conversation_id, root)`` in display order; standalone roots have no id."""
        for conversation in self.conversations:
            for root in conversation.threads:
                yield conversation.conversation_id, root
        for root in self.standalone:
            yield None, root

    def walk(self) -> Iterator[tuple[CanonicalPost, int, str | None, str | None]]:
        """
        Depth-first walk over every node in display order.

        Yields:
            Tuples of (post, depth, parent_id, conversation_id). Roots have
            depth 0 and parent_id None; standalone nodes have no
            conversation_id.
        """
        for conversation_id, root in self.roots():
            stack = [(root, 0, None)]
            while stack:
                post, depth, parent_id = stack.pop()
                yield post, depth, parent_id, conversation_id
                for child in reversed(post.children):
                    stack.append((child, depth + 1, post.id))

    def post_ids(self) -> list[str]:
        return [post.id for post, _, _, _ in self.walk()]
