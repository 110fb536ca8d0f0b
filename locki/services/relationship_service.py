"""Relationship graph: buddy requests, acceptance and removal."""

from typing import List

from locki.apis.Db import Db, Transaction
from locki.documents.profiles import Profile
from locki.exceptions import DuplicateRelationshipError, NotFoundError, ValidationError
from locki.models.firestore_types import BuddyRelationshipDoc, ProfileDoc
from locki.services.counters import clamped_decrements
from locki.util.logger import get_logger

logger = get_logger(__name__)

COLLECTION = "buddyRelationships"


def edge_id_for(follower_id: str, following_id: str) -> str:
    return f"{follower_id}_{following_id}"


class RelationshipService:
    """Directed buddy edges.

    A pair moves none -> pending (A->B active) -> mutual (both edges active
    and isMutual). Removal deactivates both edges; nothing is deleted.
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def send_request(self, from_id: str, to_id: str) -> BuddyRelationshipDoc:
        """Create (or reactivate) the edge from_id -> to_id.

        Raises:
            ValidationError: For a request to oneself
            NotFoundError: If the target profile does not exist
            DuplicateRelationshipError: If the edge is already active
        """
        if from_id == to_id:
            raise ValidationError("Cannot send a buddy request to yourself", field="userId")
        sender = self.ctx.identity.resolve(from_id)
        target = Profile.find(self.db, to_id)
        if target is None or not target.doc.isActive:
            raise NotFoundError("Profile", to_id)

        edge_id = edge_id_for(from_id, to_id)
        now = self.db.timestamp_now()
        edge = BuddyRelationshipDoc(
            id=edge_id,
            followerId=from_id,
            followerUsername=sender.username,
            followingId=to_id,
            followingUsername=target.username,
            isActive=True,
            isMutual=False,
            createdAt=now,
            lastUpdatedAt=now,
        )

        def _send(txn: Transaction):
            existing = txn.get(COLLECTION, edge_id)
            if existing is not None and existing.get("isActive"):
                raise DuplicateRelationshipError(from_id, to_id)
            txn.set(COLLECTION, edge_id, edge.model_dump())

        self.db.run_transaction(_send)
        logger.info(f"Buddy request {from_id} -> {to_id}")

        self.ctx.notifications.notify_buddy_request(to_id, from_id, sender.username)
        return edge

    def accept_request(self, requester_id: str, accepter_id: str) -> BuddyRelationshipDoc:
        """Accept the pending request requester_id -> accepter_id.

        Returns:
            The reverse edge accepter_id -> requester_id

        Raises:
            NotFoundError: If there is no pending request
        """
        accepter = self.ctx.identity.resolve(accepter_id)
        edge_id = edge_id_for(requester_id, accepter_id)
        reverse_id = edge_id_for(accepter_id, requester_id)
        now = self.db.timestamp_now()

        def _accept(txn: Transaction) -> BuddyRelationshipDoc:
            edge = txn.get(COLLECTION, edge_id)
            if edge is None or not edge.get("isActive") or edge.get("isMutual"):
                raise NotFoundError("BuddyRequest", edge_id, message="No pending buddy request")
            reverse = txn.get(COLLECTION, reverse_id)
            reverse_edge = BuddyRelationshipDoc(
                id=reverse_id,
                followerId=accepter_id,
                followerUsername=accepter.username,
                followingId=requester_id,
                followingUsername=edge.get("followerUsername", ""),
                isActive=True,
                isMutual=True,
                createdAt=reverse["createdAt"] if reverse and reverse.get("createdAt") else now,
                lastUpdatedAt=now,
            )
            txn.update(COLLECTION, edge_id, {"isMutual": True, "lastUpdatedAt": now})
            txn.set(COLLECTION, reverse_id, reverse_edge.model_dump())
            txn.update("userStats", requester_id, {"buddyCount": Db.increment(1), "lastUpdatedAt": now})
            txn.update("userStats", accepter_id, {"buddyCount": Db.increment(1), "lastUpdatedAt": now})
            return reverse_edge

        reverse_edge = self.db.run_transaction(_accept)
        logger.info(f"Buddy request {requester_id} -> {accepter_id} accepted")

        self.ctx.notifications.notify_buddy_accepted(requester_id, accepter_id, accepter.username)
        return reverse_edge

    def decline_request(self, requester_id: str, accepter_id: str) -> bool:
        """Deactivate a pending request without touching any counter."""
        edge_id = edge_id_for(requester_id, accepter_id)
        now = self.db.timestamp_now()

        def _decline(txn: Transaction) -> bool:
            edge = txn.get(COLLECTION, edge_id)
            if edge is None or not edge.get("isActive") or edge.get("isMutual"):
                return False
            txn.update(COLLECTION, edge_id, {"isActive": False, "lastUpdatedAt": now})
            return True

        return self.db.run_transaction(_decline)

    def remove_buddy(self, user_id: str, other_id: str) -> bool:
        """Deactivate both edges between the users.

        buddyCount of both users drops by exactly one when the pair was
        mutual. Returns False when neither edge was active.
        """
        forward_id = edge_id_for(user_id, other_id)
        backward_id = edge_id_for(other_id, user_id)
        now = self.db.timestamp_now()

        def _remove(txn: Transaction) -> bool:
            forward = txn.get(COLLECTION, forward_id)
            backward = txn.get(COLLECTION, backward_id)
            user_stats = txn.get("userStats", user_id)
            other_stats = txn.get("userStats", other_id)

            active = {
                edge_id: edge
                for edge_id, edge in ((forward_id, forward), (backward_id, backward))
                if edge is not None and edge.get("isActive")
            }
            if not active:
                return False
            was_mutual = len(active) == 2 and all(edge.get("isMutual") for edge in active.values())

            for edge_id in active:
                txn.update(COLLECTION, edge_id, {"isActive": False, "isMutual": False, "lastUpdatedAt": now})
            if was_mutual:
                for uid, stats in ((user_id, user_stats), (other_id, other_stats)):
                    update = clamped_decrements(stats, "buddyCount")
                    if update:
                        txn.update("userStats", uid, {**update, "lastUpdatedAt": now})
            return True

        removed = self.db.run_transaction(_remove)
        if removed:
            logger.info(f"Removed buddy relationship between {user_id} and {other_id}")
        return removed

    def get_buddy_ids(self, user_id: str) -> List[str]:
        """followingId of every active outbound edge."""
        rows = self.db.query(COLLECTION, [("followerId", "==", user_id), ("isActive", "==", True)])
        return [row["followingId"] for row in rows]

    def get_buddies(self, user_id: str, limit: int = 50) -> List[ProfileDoc]:
        """Profiles of mutual buddies."""
        rows = self.db.query(
            COLLECTION,
            [("followerId", "==", user_id), ("isActive", "==", True), ("isMutual", "==", True)],
            limit=limit,
        )
        buddy_ids = [row["followingId"] for row in rows]
        if not buddy_ids:
            return []
        profiles = self.db.query_chunked("users", "id", buddy_ids)
        return [ProfileDoc(**profile) for profile in profiles if profile.get("isActive", True)]

    def get_pending_requests(self, user_id: str) -> List[BuddyRelationshipDoc]:
        """Requests addressed to user_id that are not accepted yet."""
        rows = self.db.query(
            COLLECTION,
            [("followingId", "==", user_id), ("isActive", "==", True), ("isMutual", "==", False)],
        )
        return [BuddyRelationshipDoc(**row) for row in rows]

    def get_status(self, user_id: str, other_id: str) -> str:
        """Relationship as seen by user_id: none, pending, incoming or mutual."""
        forward = self.db.get(COLLECTION, edge_id_for(user_id, other_id))
        backward = self.db.get(COLLECTION, edge_id_for(other_id, user_id))
        forward_active = bool(forward and forward.get("isActive"))
        backward_active = bool(backward and backward.get("isActive"))
        if forward_active and backward_active and forward.get("isMutual"):
            return "mutual"
        if forward_active:
            return "pending"
        if backward_active:
            return "incoming"
        return "none"
