"""Three-step optimistic update: apply tentative state, await the backend, commit or revert."""

from typing import Callable, Generic, Optional, TypeVar

from locki.util.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class OptimisticUpdate(Generic[T]):
    """Tentative local change paired with its exact inverse.

    Usage:
        update = OptimisticUpdate(apply=state.flip, revert=state.flip)
        result = update.run(lambda: service.like(post_id, uid))
    """

    def __init__(self, apply: Callable[[], None], revert: Callable[[], None]):
        self._apply = apply
        self._revert = revert
        self.state = "pending"

    def run(self, operation: Callable[[], T]) -> T:
        """Apply the local change, then run the authoritative operation.

        Args:
            operation: Backend call whose success confirms the change

        Returns:
            The operation's result

        Raises:
            Exception: Whatever the operation raised, after reverting
        """
        self._apply()
        self.state = "applied"
        try:
            result = operation()
        except Exception as e:
            self._revert()
            self.state = "reverted"
            logger.info(f"Optimistic update reverted: {e}")
            raise
        self.state = "committed"
        return result


class LocalPostState:
    """Client-held view of one post's like state."""

    def __init__(self, post_id: str, is_liked: bool = False, like_count: int = 0):
        self.post_id = post_id
        self.is_liked = is_liked
        self.like_count = like_count

    def set_liked(self, liked: bool):
        if liked == self.is_liked:
            return
        self.is_liked = liked
        self.like_count = self.like_count + 1 if liked else max(0, self.like_count - 1)


def toggle_like(state: LocalPostState, engagement, actor_id: str) -> Optional[object]:
    """Flip the like state immediately and confirm it with the engagement ledger.

    Args:
        state: Local post state to mutate
        engagement: EngagementService used as the source of truth
        actor_id: User toggling the like

    Returns:
        Result of the backend call
    """
    was_liked, previous_count = state.is_liked, state.like_count

    def _revert():
        state.is_liked = was_liked
        state.like_count = previous_count

    update = OptimisticUpdate(apply=lambda: state.set_liked(not was_liked), revert=_revert)
    if was_liked:
        return update.run(lambda: engagement.unlike(state.post_id, actor_id))
    return update.run(lambda: engagement.like(state.post_id, actor_id))
