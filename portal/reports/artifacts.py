"""
Pick the current uploaded artifact (image) for a report.

Candidates are the most recent `file_meta` rows filed under
section "reports" / subsection <report_key>. Each is probed against Drive,
newest first, and the first one that still resolves wins. Nothing is cached:
every call re-queries and re-probes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from portal.core.google import GoogleAPIError, GoogleClient
from portal.uploads import repository as uploads_repository

logger = logging.getLogger(__name__)

ARTIFACT_SECTION = "reports"
ARTIFACT_CANDIDATE_LIMIT = 5

Verifier = Callable[[dict[str, Any]], Awaitable[bool]]


async def first_verified(candidates: Iterable[dict[str, Any]], verify: Verifier) -> dict[str, Any] | None:
    """
    Lazily verify `candidates` in order and stop at the first success.
    """
    verified = (candidate for candidate in candidates if await verify(candidate))
    return await anext(verified, None)


def drive_verifier(google: GoogleClient) -> Verifier:
    async def verify(candidate: dict[str, Any]) -> bool:
        try:
            await google.get_file_metadata(str(candidate["drive_file_id"]))
        except GoogleAPIError as exc:
            logger.warning(
                "artifact_unavailable file_id=%s drive_file_id=%s error=%s",
                candidate.get("id"),
                candidate.get("drive_file_id"),
                exc,
            )
            return False
        return True

    return verify


async def resolve_artifact(
    report_key: str,
    *,
    google: GoogleClient,
    limit: int = ARTIFACT_CANDIDATE_LIMIT,
) -> dict[str, Any] | None:
    """
    Return the newest verifiable file row for `report_key`, or None.
    """
    candidates = await uploads_repository.list_recent_files(
        section=ARTIFACT_SECTION,
        subsection=report_key,
        limit=limit,
    )
    artifact = await first_verified(candidates, drive_verifier(google))
    if artifact is None:
        logger.info("artifact_missing report_key=%s candidates=%s", report_key, len(candidates))
    return artifact


def image_media_type(filename: str) -> str:
    return "image/jpeg" if filename.lower().endswith((".jpg", ".jpeg")) else "image/png"
