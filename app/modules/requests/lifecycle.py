"""
Skill request status machine.

    pending --accept (provider)--> accepted --complete (either)--> completed
    pending --reject (provider)--> rejected
    pending --cancel (requester)--> cancelled

completed, rejected and cancelled are terminal.
"""

from enum import Enum
from typing import Dict, Any, FrozenSet, NamedTuple
from fastapi import HTTPException, status


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class Actor(str, Enum):
    REQUESTER = "requester"
    PROVIDER = "provider"


class Transition(NamedTuple):
    source: RequestStatus
    target: RequestStatus
    actors: FrozenSet[Actor]


TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED, RequestStatus.REJECTED})

TRANSITIONS: Dict[str, Transition] = {
    "accept": Transition(RequestStatus.PENDING, RequestStatus.ACCEPTED, frozenset({Actor.PROVIDER})),
    "reject": Transition(RequestStatus.PENDING, RequestStatus.REJECTED, frozenset({Actor.PROVIDER})),
    "cancel": Transition(RequestStatus.PENDING, RequestStatus.CANCELLED, frozenset({Actor.REQUESTER})),
    # Either participant may complete; no mutual confirmation is required.
    "complete": Transition(RequestStatus.ACCEPTED, RequestStatus.COMPLETED, frozenset({Actor.REQUESTER, Actor.PROVIDER})),
}


def actor_for(skill_request: Dict[str, Any], user_id: str) -> Actor:
    """Which side of the request the user is on; 403 for outsiders."""
    if skill_request.get("requester_id") == user_id:
        return Actor.REQUESTER
    if skill_request.get("provider_id") == user_id:
        return Actor.PROVIDER
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be the requester or provider of this skill request"
    )


def plan_transition(skill_request: Dict[str, Any], action: str, user_id: str) -> Transition:
    """Validate `action` by `user_id` against the request's current status.

    Returns the transition to apply; raises 403 for the wrong actor and 409
    when the current status does not allow the action.
    """
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {action}")

    actor = actor_for(skill_request, user_id)
    if actor not in transition.actors:
        allowed = " or ".join(sorted(a.value for a in transition.actors))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the {allowed} may {action} this request"
        )

    current = RequestStatus(skill_request["status"])
    if current in TERMINAL_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Request is already {current.value}"
        )
    if current != transition.source:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} a request that is {current.value}"
        )
    return transition
