"""Narrow the advertised server list down to the servers a scrape should test."""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from ..config import NEAREST_SERVER_ID
from .errors import NoCandidatesError, ServerNotFoundError
from .models import CandidateTarget, SelectionRequest

LOGGER = logging.getLogger(__name__)

Matcher = Callable[[Sequence[CandidateTarget], Sequence[int]], List[CandidateTarget]]


def find_by_identifiers(candidates: Sequence[CandidateTarget], server_ids: Sequence[int]) -> List[CandidateTarget]:
    """Return one candidate per requested id, substituting the nearest server when an id is absent.

    The nearest sentinel resolves to the nearest server. Callers detect a
    substitution by comparing the returned id with the requested one.
    """

    if not candidates:
        return []
    nearest = min(candidates, key=lambda candidate: candidate.distance)
    by_id = {}
    for candidate in candidates:
        by_id.setdefault(candidate.id, candidate)

    matched: List[CandidateTarget] = []
    for server_id in server_ids:
        if server_id == NEAREST_SERVER_ID:
            matched.append(nearest)
        else:
            matched.append(by_id.get(str(server_id), nearest))
    return matched


def select_targets(
    candidates: Sequence[CandidateTarget],
    request: SelectionRequest,
    matcher: Matcher = find_by_identifiers,
) -> List[CandidateTarget]:
    if not candidates:
        raise NoCandidatesError()

    if request.nearest_only:
        return [candidates[0]]

    matched = matcher(candidates, request.server_ids)
    if not matched:
        LOGGER.error("No matching servers returned for ids %s", list(request.server_ids))
        raise ServerNotFoundError(request.server_ids[0], f"no servers returned for ID {request.server_ids[0]}")

    selected: List[CandidateTarget] = []
    for position, server_id in enumerate(request.server_ids):
        if position >= len(matched):
            LOGGER.error("No matching server returned for server_id=%s", server_id)
            raise ServerNotFoundError(server_id, f"no servers returned for ID {server_id}")
        target = matched[position]
        if server_id != NEAREST_SERVER_ID and target.id != str(server_id):
            if not request.fallback:
                LOGGER.error(
                    "Could not find server_id=%s in available servers and server_fallback is not set, failing this scrape",
                    server_id,
                )
                raise ServerNotFoundError(server_id)
            LOGGER.info("Server %s unavailable, falling back to server %s (%s)", server_id, target.id, target.name)
        if any(chosen.id == target.id for chosen in selected):
            LOGGER.warning(
                "Server %s is selected more than once; its duplicate series will make the scrape fail",
                target.id,
            )
        selected.append(target)
    return selected
