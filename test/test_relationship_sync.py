import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.ports.gateway_errors import Conflict, NetworkUnavailable, NotFound, Unauthorized
from application.sync import (
    PENDING_COUNT,
    PENDING_COUNT_DERIVED,
    PENDING_COUNT_REMOTE,
    CollectionRefresher,
    EntityStore,
    RelationshipService,
    SessionContext,
    StoreKind,
    SyncStatus,
)
from domain.social import FriendshipStatus, RelationshipCollection
from infrastructure.gateway.in_memory_remote_gateway import InMemorySyncBackend
from infrastructure.notifications import RecordingNotifier


class _RecordingGateway:
    def __init__(self, inner) -> None:
        self._inner = inner
        self.calls: list[str] = []

    def __getattr__(self, name):
        target = getattr(self._inner, name)

        async def _call(*args, **kwargs):
            self.calls.append(name)
            return await target(*args, **kwargs)

        return _call


class _Client:
    def __init__(self, backend: InMemorySyncBackend, user_id: int, *, source: str = PENDING_COUNT_REMOTE) -> None:
        self.remote = backend.for_user(user_id)
        self.gateway = _RecordingGateway(self.remote)
        self.store = EntityStore()
        self.notifier = RecordingNotifier()
        self.refresher = CollectionRefresher(gateway=self.gateway, store=self.store, pending_count_source=source)
        self.service = RelationshipService(
            gateway=self.gateway,
            store=self.store,
            notifier=self.notifier,
            refresher=self.refresher,
        )
        self.ctx = SessionContext(user_id=user_id)

    def ids(self, kind: StoreKind) -> list[int]:
        return [e.id for e in self.store.get_all(kind)]

    @property
    def pending_count(self) -> int:
        return self.store.get_scalar(PENDING_COUNT)


class _NegativeCountGateway:
    async def get_pending_count(self) -> int:
        return -3


class TestRelationshipSync(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.backend = InMemorySyncBackend()
        self.backend.register_user(1, "alice")
        self.backend.register_user(2, "bob")
        self.backend.register_user(3, "carol")
        self.alice = _Client(self.backend, 1)
        self.bob = _Client(self.backend, 2)

    async def test_send_to_self_never_calls_gateway(self) -> None:
        result = await self.alice.service.send_friend_request(self.alice.ctx, 1)

        self.assertIs(result.status, SyncStatus.SHORT_CIRCUITED)
        self.assertEqual(result.value.status, FriendshipStatus.NONE)
        self.assertFalse(result.value.actionable)
        self.assertEqual(self.alice.gateway.calls, [])
        self.assertEqual(self.alice.notifier.notices, [])

    async def test_send_pending_refetches_outgoing_only(self) -> None:
        result = await self.alice.service.send_friend_request(self.alice.ctx, 2)

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(result.value.status, FriendshipStatus.PENDING)
        self.assertEqual(self.alice.gateway.calls, ["send_friend_request", "list_outgoing"])
        self.assertEqual([r.counterpart_id for r in self.alice.store.get_all(StoreKind.OUTGOING)], [2])

    async def test_send_against_local_pending_or_friend_short_circuits(self) -> None:
        await self.alice.service.send_friend_request(self.alice.ctx, 2)
        self.alice.gateway.calls.clear()

        again = await self.alice.service.send_friend_request(self.alice.ctx, 2)
        self.assertIs(again.status, SyncStatus.SHORT_CIRCUITED)
        self.assertEqual(again.value.status, FriendshipStatus.PENDING)

        await self.bob.service.refresh_all(self.bob.ctx)
        await self.bob.service.accept_friend_request(self.bob.ctx, self.bob.ids(StoreKind.INCOMING)[0])
        await self.alice.service.refresh_all(self.alice.ctx)
        self.alice.gateway.calls.clear()

        friend = await self.alice.service.send_friend_request(self.alice.ctx, 2)
        self.assertIs(friend.status, SyncStatus.SHORT_CIRCUITED)
        self.assertEqual(friend.value.status, FriendshipStatus.ACCEPTED)
        self.assertEqual(self.alice.gateway.calls, [])

    async def test_mutual_send_auto_accepts(self) -> None:
        await self.alice.service.send_friend_request(self.alice.ctx, 2)
        await self.bob.service.refresh_all(self.bob.ctx)
        self.assertEqual(self.bob.pending_count, 1)
        self.bob.gateway.calls.clear()

        result = await self.bob.service.send_friend_request(self.bob.ctx, 1)

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(result.value.status, FriendshipStatus.ACCEPTED)
        self.assertTrue(result.value.actionable)
        self.assertEqual(
            self.bob.gateway.calls,
            ["send_friend_request", "list_outgoing", "list_incoming", "list_friends", "get_pending_count"],
        )
        self.assertEqual(self.bob.ids(StoreKind.FRIENDS), [1])
        self.assertEqual(self.bob.ids(StoreKind.INCOMING), [])
        self.assertEqual(self.bob.pending_count, 0)

        await self.alice.service.refresh_friends(self.alice.ctx)
        self.assertEqual(self.alice.ids(StoreKind.FRIENDS), [2])

    async def test_accepting_request_seven(self) -> None:
        for sender in range(2, 9):
            self.backend.register_user(sender, f"user{sender}")
            await self.backend.for_user(sender).send_friend_request(user_id=1)
        await self.alice.service.refresh_all(self.alice.ctx)
        self.assertEqual(self.alice.pending_count, 7)
        self.assertIn(7, self.alice.ids(StoreKind.INCOMING))
        self.alice.gateway.calls.clear()

        result = await self.alice.service.accept_friend_request(self.alice.ctx, 7)

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(self.alice.gateway.calls[1:], ["list_incoming", "list_friends", "get_pending_count"])
        self.assertNotIn(7, self.alice.ids(StoreKind.INCOMING))
        self.assertEqual(self.alice.ids(StoreKind.FRIENDS), [8])
        self.assertEqual(self.alice.store.get(StoreKind.FRIENDS, 8).friendship_id, 7)
        self.assertEqual(self.alice.pending_count, 6)

    async def test_duplicate_send_surfaces_conflict_without_refetch(self) -> None:
        await self.alice.service.send_friend_request(self.alice.ctx, 2)
        self.alice.store.clear()
        self.alice.gateway.calls.clear()

        result = await self.alice.service.send_friend_request(self.alice.ctx, 2)

        self.assertIs(result.status, SyncStatus.FAILED)
        self.assertIsInstance(result.error, Conflict)
        self.assertEqual(self.alice.gateway.calls, ["send_friend_request"])
        notice = self.alice.notifier.notices[-1]
        self.assertFalse(notice.blocking)
        self.assertEqual(notice.error_kind, "conflict")

    async def test_reject_incoming_and_cancel_outgoing(self) -> None:
        await self.bob.service.send_friend_request(self.bob.ctx, 1)
        await self.alice.service.send_friend_request(self.alice.ctx, 3)
        await self.alice.service.refresh_all(self.alice.ctx)
        incoming_id = self.alice.ids(StoreKind.INCOMING)[0]
        outgoing_id = self.alice.ids(StoreKind.OUTGOING)[0]
        self.alice.gateway.calls.clear()

        await self.alice.service.reject_friend_request(self.alice.ctx, incoming_id)
        self.assertEqual(self.alice.gateway.calls, ["reject_friend_request", "list_incoming", "get_pending_count"])
        self.assertEqual(self.alice.ids(StoreKind.INCOMING), [])
        self.assertEqual(self.alice.pending_count, 0)

        self.alice.gateway.calls.clear()
        await self.alice.service.reject_friend_request(self.alice.ctx, outgoing_id)
        self.assertEqual(self.alice.gateway.calls, ["reject_friend_request", "list_outgoing", "get_pending_count"])
        self.assertEqual(self.alice.ids(StoreKind.OUTGOING), [])

    async def test_rejected_sender_can_send_again(self) -> None:
        sent = await self.alice.service.send_friend_request(self.alice.ctx, 2)
        await self.bob.service.refresh_all(self.bob.ctx)
        await self.bob.service.reject_friend_request(self.bob.ctx, sent.value.edge_id)
        await self.alice.service.refresh_outgoing(self.alice.ctx)
        self.assertEqual(self.alice.ids(StoreKind.OUTGOING), [])

        again = await self.alice.service.send_friend_request(self.alice.ctx, 2)

        self.assertIs(again.status, SyncStatus.APPLIED)
        self.assertEqual(again.value.status, FriendshipStatus.PENDING)
        self.assertEqual(again.value.edge_id, sent.value.edge_id)

    async def test_remove_friend_refetches_friends(self) -> None:
        await self.alice.service.send_friend_request(self.alice.ctx, 2)
        await self.bob.service.send_friend_request(self.bob.ctx, 1)
        await self.alice.service.refresh_all(self.alice.ctx)
        self.alice.gateway.calls.clear()

        result = await self.alice.service.remove_friend(self.alice.ctx, 2)

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(self.alice.gateway.calls, ["remove_friend", "list_friends"])
        self.assertEqual(self.alice.ids(StoreKind.FRIENDS), [])

    async def test_failure_leaves_store_untouched(self) -> None:
        await self.bob.service.send_friend_request(self.bob.ctx, 1)
        await self.alice.service.refresh_all(self.alice.ctx)
        version = self.alice.store.version
        self.alice.remote.fail_next("accept_friend_request", NetworkUnavailable("offline"))

        result = await self.alice.service.accept_friend_request(self.alice.ctx, self.alice.ids(StoreKind.INCOMING)[0])

        self.assertIs(result.status, SyncStatus.FAILED)
        self.assertEqual(self.alice.store.version, version)
        self.assertFalse(self.alice.notifier.notices[-1].blocking)
        self.assertEqual(self.alice.notifier.notices[-1].error_kind, "network_unavailable")

    async def test_not_found_refetches_affected_collections(self) -> None:
        result = await self.alice.service.accept_friend_request(self.alice.ctx, 99)

        self.assertIsInstance(result.error, NotFound)
        self.assertEqual(
            self.alice.gateway.calls,
            ["accept_friend_request", "list_incoming", "list_friends", "get_pending_count"],
        )

    async def test_failed_refetch_keeps_previous_collection(self) -> None:
        await self.bob.service.send_friend_request(self.bob.ctx, 1)
        await self.alice.service.refresh_all(self.alice.ctx)
        self.alice.remote.fail_next("list_friends", NetworkUnavailable("offline"))

        result = await self.alice.service.accept_friend_request(self.alice.ctx, self.alice.ids(StoreKind.INCOMING)[0])

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(self.alice.ids(StoreKind.INCOMING), [])
        # Bob is a friend server-side, but the failed step left Friends as it was.
        self.assertEqual(self.alice.ids(StoreKind.FRIENDS), [])
        self.assertEqual(self.alice.pending_count, 0)
        await self.alice.service.refresh_friends(self.alice.ctx)
        self.assertEqual(self.alice.ids(StoreKind.FRIENDS), [2])

    async def test_signed_out_is_unauthorized(self) -> None:
        result = await self.alice.service.remove_friend(None, 2)
        self.assertIsInstance(result.error, Unauthorized)
        self.assertEqual(self.alice.gateway.calls, [])

    async def test_revoked_session_drops_refetch(self) -> None:
        await self.bob.service.send_friend_request(self.bob.ctx, 1)
        self.alice.ctx.liveness.revoke()

        result = await self.alice.service.refresh_all(self.alice.ctx)

        self.assertIs(result.status, SyncStatus.DROPPED)
        self.assertEqual(self.alice.store.version, 0)

    async def test_revoked_scope_still_refetches_confirmed_accept(self) -> None:
        await self.bob.service.send_friend_request(self.bob.ctx, 1)
        await self.alice.service.refresh_all(self.alice.ctx)
        notices_before = len(self.alice.notifier.notices)
        scope = self.alice.ctx.child()
        scope.liveness.revoke()

        result = await self.alice.service.accept_friend_request(scope, self.alice.ids(StoreKind.INCOMING)[0])

        self.assertIs(result.status, SyncStatus.DROPPED)
        self.assertEqual(self.alice.ids(StoreKind.INCOMING), [])
        self.assertEqual(self.alice.ids(StoreKind.FRIENDS), [2])
        self.assertEqual(self.alice.pending_count, 0)
        self.assertEqual(len(self.alice.notifier.notices), notices_before)

    async def test_refresh_pending_count_only_fetches_count(self) -> None:
        await self.bob.service.send_friend_request(self.bob.ctx, 1)

        result = await self.alice.service.refresh_pending_count(self.alice.ctx)

        self.assertIs(result.status, SyncStatus.APPLIED)
        self.assertEqual(self.alice.pending_count, 1)
        self.assertEqual(self.alice.gateway.calls, ["get_pending_count"])


class TestPendingCountSource(unittest.IsolatedAsyncioTestCase):
    async def test_derived_count_follows_incoming(self) -> None:
        backend = InMemorySyncBackend()
        backend.register_user(1, "alice")
        for sender in (2, 3):
            backend.register_user(sender, f"user{sender}")
            await backend.for_user(sender).send_friend_request(user_id=1)
        alice = _Client(backend, 1, source=PENDING_COUNT_DERIVED)

        await alice.service.refresh_all(alice.ctx)
        self.assertEqual(alice.pending_count, 2)
        await alice.service.accept_friend_request(alice.ctx, alice.ids(StoreKind.INCOMING)[0])

        self.assertEqual(alice.pending_count, 1)
        self.assertNotIn("get_pending_count", alice.gateway.calls)

    async def test_remote_count_is_bounded_at_zero(self) -> None:
        store = EntityStore()
        refresher = CollectionRefresher(gateway=_NegativeCountGateway(), store=store)
        failures = await refresher.refresh(SessionContext(user_id=1), [RelationshipCollection.PENDING_COUNT])
        self.assertEqual(failures, [])
        self.assertEqual(store.get_scalar(PENDING_COUNT), 0)

    def test_unknown_source_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            CollectionRefresher(gateway=_NegativeCountGateway(), store=EntityStore(), pending_count_source="badge")


if __name__ == "__main__":
    unittest.main()
