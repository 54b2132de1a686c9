import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from domain.social import (
    FriendProfile,
    FriendRequest,
    FriendshipEdge,
    FriendshipStatus,
    RelationshipCollection as C,
    RelationshipOperation as Op,
    RequestDirection,
    SendRequestResult,
    UnexpectedSendStatusError,
    UserSummary,
    can_transition,
    describe_status,
    interpret_send_response,
    locate_request,
    precheck_send,
    refetch_plan,
)

S = FriendshipStatus


def _request(request_id: int, direction: RequestDirection, counterpart_id: int) -> FriendRequest:
    return FriendRequest(
        id=request_id,
        direction=direction,
        counterpart=UserSummary(id=counterpart_id, username=f"user{counterpart_id}"),
    )


class TestTransitions(unittest.TestCase):
    def test_legal_transitions(self) -> None:
        self.assertTrue(can_transition(S.NONE, S.PENDING))
        self.assertTrue(can_transition(S.PENDING, S.ACCEPTED))
        self.assertTrue(can_transition(S.PENDING, S.REJECTED))
        self.assertTrue(can_transition(S.ACCEPTED, S.NONE))
        self.assertTrue(can_transition(S.REJECTED, S.PENDING))

    def test_illegal_transitions(self) -> None:
        self.assertFalse(can_transition(S.NONE, S.ACCEPTED))
        self.assertFalse(can_transition(S.ACCEPTED, S.PENDING))
        self.assertFalse(can_transition(S.REJECTED, S.ACCEPTED))
        self.assertFalse(can_transition(S.PENDING, S.NONE))


class TestSendPrecheck(unittest.TestCase):
    def test_self_is_never_sent(self) -> None:
        check = precheck_send(self_id=1, target_id=1, friends=[], incoming=[], outgoing=[])
        self.assertFalse(check.proceed)
        self.assertEqual(check.view.status, S.NONE)
        self.assertFalse(check.view.actionable)

    def test_existing_friend(self) -> None:
        friends = [FriendProfile(id=2, username="bob", friendship_id=40)]
        check = precheck_send(self_id=1, target_id=2, friends=friends, incoming=[], outgoing=[])
        self.assertFalse(check.proceed)
        self.assertEqual(check.view.status, S.ACCEPTED)
        self.assertEqual(check.view.edge_id, 40)

    def test_outgoing_pending(self) -> None:
        outgoing = [_request(9, RequestDirection.OUTGOING, 2)]
        check = precheck_send(self_id=1, target_id=2, friends=[], incoming=[], outgoing=outgoing)
        self.assertFalse(check.proceed)
        self.assertEqual(check.view.status, S.PENDING)
        self.assertFalse(check.view.actionable)

    def test_incoming_pending_still_calls_gateway(self) -> None:
        incoming = [_request(9, RequestDirection.INCOMING, 2)]
        check = precheck_send(self_id=1, target_id=2, friends=[], incoming=incoming, outgoing=[])
        self.assertTrue(check.proceed)

    def test_unknown_pair_proceeds(self) -> None:
        self.assertTrue(precheck_send(self_id=1, target_id=3, friends=[], incoming=[], outgoing=[]).proceed)


class TestResponsesAndPlans(unittest.TestCase):
    def test_interpret_send_response(self) -> None:
        self.assertIs(interpret_send_response(SendRequestResult(status=S.PENDING)), S.PENDING)
        self.assertIs(interpret_send_response(SendRequestResult(status="accepted")), S.ACCEPTED)
        with self.assertRaises(UnexpectedSendStatusError):
            interpret_send_response(SendRequestResult(status=S.REJECTED))

    def test_refetch_table(self) -> None:
        self.assertEqual(refetch_plan(Op.SEND, send_status=S.PENDING), (C.OUTGOING,))
        self.assertEqual(
            refetch_plan(Op.SEND, send_status=S.ACCEPTED),
            (C.OUTGOING, C.INCOMING, C.FRIENDS, C.PENDING_COUNT),
        )
        self.assertEqual(refetch_plan(Op.ACCEPT), (C.INCOMING, C.FRIENDS, C.PENDING_COUNT))
        self.assertEqual(
            refetch_plan(Op.REJECT, held_in=RequestDirection.INCOMING),
            (C.INCOMING, C.PENDING_COUNT),
        )
        self.assertEqual(
            refetch_plan(Op.REJECT, held_in=RequestDirection.OUTGOING),
            (C.OUTGOING, C.PENDING_COUNT),
        )
        self.assertEqual(refetch_plan(Op.REJECT), (C.INCOMING, C.OUTGOING, C.PENDING_COUNT))
        self.assertEqual(refetch_plan(Op.REMOVE), (C.FRIENDS,))

    def test_locate_request(self) -> None:
        incoming = [_request(7, RequestDirection.INCOMING, 2)]
        outgoing = [_request(8, RequestDirection.OUTGOING, 3)]
        self.assertIs(locate_request(7, incoming=incoming, outgoing=outgoing), RequestDirection.INCOMING)
        self.assertIs(locate_request(8, incoming=incoming, outgoing=outgoing), RequestDirection.OUTGOING)
        self.assertIsNone(locate_request(9, incoming=incoming, outgoing=outgoing))


class TestDescribeStatus(unittest.TestCase):
    def _edge(self, status: FriendshipStatus, initiator: int) -> FriendshipEdge:
        other = 2 if initiator == 1 else 1
        return FriendshipEdge(id=5, user_a=initiator, user_b=other, initiator=initiator, status=status)

    def test_actionable_rules(self) -> None:
        cases = [
            (None, S.NONE, True),
            (self._edge(S.PENDING, initiator=1), S.PENDING, False),
            (self._edge(S.PENDING, initiator=2), S.PENDING, True),
            (self._edge(S.ACCEPTED, initiator=2), S.ACCEPTED, True),
            (self._edge(S.REJECTED, initiator=1), S.REJECTED, True),
            (self._edge(S.REJECTED, initiator=2), S.REJECTED, False),
        ]
        for edge, status, actionable in cases:
            with self.subTest(edge=edge):
                view = describe_status(1, edge)
                self.assertEqual(view.status, status)
                self.assertEqual(view.actionable, actionable)

    def test_edge_helpers(self) -> None:
        edge = self._edge(S.PENDING, initiator=2)
        self.assertEqual(edge.receiver, 1)
        self.assertEqual(edge.other(1), 2)
        self.assertTrue(edge.involves(2))
        self.assertFalse(edge.involves(3))


if __name__ == "__main__":
    unittest.main()
