import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.ports.gateway_errors import NetworkUnavailable
from application.sync import (
    PENDING_COUNT,
    CollectionRefresher,
    EntityStore,
    FriendshipStatusService,
    SessionContext,
    SyncStatus,
)
from domain.social import FriendshipStatus
from infrastructure.gateway.in_memory_remote_gateway import InMemorySyncBackend


class TestFriendshipStatusService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.backend = InMemorySyncBackend()
        for user_id, name in ((1, "alice"), (2, "bob"), (3, "carol")):
            self.backend.register_user(user_id, name)
        self.gateway = self.backend.for_user(1)
        self.store = EntityStore()
        self.service = FriendshipStatusService(
            gateway=self.gateway,
            refresher=CollectionRefresher(gateway=self.gateway, store=self.store),
        )
        self.ctx = SessionContext(user_id=1)

    async def test_own_profile_is_none_and_not_actionable(self) -> None:
        self.gateway.fail_next("get_friendship_status", NetworkUnavailable("should not be called"))

        view = await self.service.check_friendship_status(self.ctx, 1)

        self.assertEqual(view.status, FriendshipStatus.NONE)
        self.assertFalse(view.actionable)
        self.assertIsNone(view.error)

    async def test_signed_out(self) -> None:
        view = await self.service.check_friendship_status(None, 2)
        self.assertEqual(view.status, FriendshipStatus.NONE)
        self.assertFalse(view.actionable)

    async def test_statuses_from_both_sides(self) -> None:
        self.assertTrue((await self.service.check_friendship_status(self.ctx, 3)).actionable)

        await self.backend.for_user(2).send_friend_request(user_id=1)
        incoming = await self.service.check_friendship_status(self.ctx, 2)
        self.assertEqual(incoming.status, FriendshipStatus.PENDING)
        self.assertTrue(incoming.actionable)
        self.assertEqual(incoming.initiator_id, 2)

        await self.gateway.send_friend_request(user_id=3)
        outgoing = await self.service.check_friendship_status(self.ctx, 3)
        self.assertEqual(outgoing.status, FriendshipStatus.PENDING)
        self.assertFalse(outgoing.actionable)

    async def test_rejected_pair(self) -> None:
        sent = await self.gateway.send_friend_request(user_id=2)
        await self.backend.for_user(2).reject_friend_request(request_id=sent.request_id)

        mine = await self.service.check_friendship_status(self.ctx, 2)
        theirs = await self.backend.for_user(2).get_friendship_status(user_id=1)

        self.assertEqual(mine.status, FriendshipStatus.REJECTED)
        self.assertTrue(mine.actionable)
        self.assertFalse(theirs.actionable)

    async def test_failure_degrades_to_none(self) -> None:
        error = NetworkUnavailable("offline")
        self.gateway.fail_next("get_friendship_status", error)

        view = await self.service.check_friendship_status(self.ctx, 2)

        self.assertEqual(view.status, FriendshipStatus.NONE)
        self.assertFalse(view.actionable)
        self.assertIs(view.error, error)

    async def test_refresh_pending_count(self) -> None:
        await self.backend.for_user(2).send_friend_request(user_id=1)
        await self.backend.for_user(3).send_friend_request(user_id=1)

        result = await self.service.refresh_pending_count(self.ctx)

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(self.store.get_scalar(PENDING_COUNT), 2)

    async def test_refresh_pending_count_failure_keeps_value(self) -> None:
        self.store.set_scalar(PENDING_COUNT, 4)
        self.gateway.fail_next("get_pending_count", NetworkUnavailable("offline"))

        result = await self.service.refresh_pending_count(self.ctx)

        self.assertIs(result.status, SyncStatus.FAILED)
        self.assertEqual(self.store.get_scalar(PENDING_COUNT), 4)


if __name__ == "__main__":
    unittest.main()
