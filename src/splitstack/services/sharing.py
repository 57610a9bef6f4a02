from __future__ import annotations

import re
import secrets
import string
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Sequence

from splitstack.db.documents import snapshot_from_document, snapshot_to_document
from splitstack.db.models import Participant, SharedSnapshot, Stack
from splitstack.logging import get_logger
from splitstack.services.errors import NothingToShareError, SplitStackError
from splitstack.services.stacks import completed_receipts

SHARE_ID_LENGTH = 6
SHARE_ID_ALPHABET = string.ascii_uppercase + string.digits
MAX_SHARE_ID_ATTEMPTS = 5

_SHARE_ID_RE = re.compile(rf"^[A-Z0-9]{{{SHARE_ID_LENGTH}}}$")


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[dict[str, Any]]: ...

    async def set(self, key: str, value: dict[str, Any]) -> None: ...


def generate_share_id() -> str:
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(SHARE_ID_LENGTH))


def is_share_id(value: str) -> bool:
    return bool(_SHARE_ID_RE.match(value))


def share_url(base_url: str, share_id: str) -> str:
    return f"{base_url}{share_id}"


def build_snapshot(stack: Stack, *, now: Optional[datetime] = None) -> SharedSnapshot:
    completed = completed_receipts(stack)
    if not completed:
        raise NothingToShareError()
    return SharedSnapshot(
        stack_name=stack.name,
        stack_date=stack.date,
        receipts=tuple(completed),
        shared_at=now or datetime.now(timezone.utc),
    )


async def _allocate_share_id(store: KeyValueStore) -> str:
    log = get_logger(__name__)
    for attempt in range(1, MAX_SHARE_ID_ATTEMPTS + 1):
        share_id = generate_share_id()
        if await store.get(share_id) is None:
            return share_id
        log.warning("share.id.collision", share_id=share_id, attempt=attempt)
    raise SplitStackError("Could not allocate a share id, please try again.")


async def share_stack(store: KeyValueStore, stack: Stack, *, now: Optional[datetime] = None) -> Stack:
    """Publish a read-only snapshot of the stack's completed receipts.

    An id already assigned to the stack is reused, so re-sharing refreshes
    the same link. The returned stack carries the share id and should be
    persisted by the caller.
    """
    snapshot = build_snapshot(stack, now=now)
    share_id = stack.share_id or await _allocate_share_id(store)
    await store.set(share_id, snapshot_to_document(snapshot))
    get_logger(__name__).info(
        "share.published",
        stack_id=stack.id,
        share_id=share_id,
        receipts=len(snapshot.receipts),
    )
    if stack.share_id == share_id:
        return stack
    return replace(stack, share_id=share_id)


async def load_shared(
    store: KeyValueStore,
    share_id: str,
    roster: Sequence[Participant],
) -> Optional[SharedSnapshot]:
    share_id = share_id.strip().upper()
    if not is_share_id(share_id):
        return None
    data = await store.get(share_id)
    if data is None:
        return None
    return snapshot_from_document(data, roster)
