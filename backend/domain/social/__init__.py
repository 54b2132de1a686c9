from domain.social.friendship import (
    FriendProfile,
    FriendRequest,
    FriendshipEdge,
    FriendshipStatus,
    FriendshipStatusView,
    RequestDirection,
    SendRequestResult,
    UserSummary,
)
from domain.social.relationship import (
    RelationshipCollection,
    RelationshipOperation,
    SendPrecheck,
    UnexpectedSendStatusError,
    can_transition,
    describe_status,
    interpret_send_response,
    locate_request,
    precheck_send,
    refetch_plan,
)

__all__ = [
    "FriendProfile",
    "FriendRequest",
    "FriendshipEdge",
    "FriendshipStatus",
    "FriendshipStatusView",
    "RelationshipCollection",
    "RelationshipOperation",
    "RequestDirection",
    "SendPrecheck",
    "SendRequestResult",
    "UnexpectedSendStatusError",
    "UserSummary",
    "can_transition",
    "describe_status",
    "interpret_send_response",
    "locate_request",
    "precheck_send",
    "refetch_plan",
]
