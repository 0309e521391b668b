"""
Account Deletion Orchestrator
=============================
Cascade-deletes a DJ account across Stripe, the document store and Firebase
Auth:

    1. Read stripe linkage + owned event ids (concurrently)
    2. Delete the Stripe connected account (failure logged, not fatal)
    3. Delete /events/{eventId} for each owned event (concurrently)
    4. Delete /users/{uid}
    5. Delete the identity record last, so the session stays valid for 1-4

The cascade is not atomic. A failure in steps 3-5 leaves earlier steps
applied (e.g. store data gone, identity still present) and is raised to the
caller; there is no rollback. Event removals in step 3 run together, so
one failing removal does not stop its siblings, and the first error is
raised once all of them have settled.
"""

import asyncio
from typing import List, Optional

import structlog

from services.identity_provider import IIdentityProvider
from services.payment_provider import PaymentProvider
from storage import IDocumentStore

logger = structlog.get_logger(component="account_deletion")


def _owned_event_ids(events) -> List[str]:
    # Index-like keys come back from RTDB as an array with holes
    if isinstance(events, dict):
        return list(events.keys())
    if isinstance(events, list):
        return [str(i) for i, event in enumerate(events) if event is not None]
    return []


class AccountDeletionOrchestrator:
    def __init__(
        self,
        store: IDocumentStore,
        payments: PaymentProvider,
        identity: IIdentityProvider,
    ):
        self.store = store
        self.payments = payments
        self.identity = identity

    async def _read_account(self, uid: str):
        stripe_link, events = await asyncio.gather(
            self.store.get(f"/users/{uid}/stripe"),
            self.store.get(f"/users/{uid}/events"),
        )
        account_id: Optional[str] = (
            stripe_link.get("accountId") if isinstance(stripe_link, dict) else None
        )
        return account_id, _owned_event_ids(events)

    async def _close_payment_account(self, uid: str, account_id: str) -> None:
        try:
            await self.payments.delete_account(account_id)
        except Exception as e:
            # Local data is erased regardless
            logger.error("stripe_account_delete_failed",
                         uid=uid, account_id=account_id, error=str(e))

    async def delete_account(self, uid: str) -> None:
        log = logger.bind(uid=uid)

        account_id, event_ids = await self._read_account(uid)
        log.info("account_deletion_started",
                 has_payment_account=bool(account_id), events=len(event_ids))

        if account_id:
            await self._close_payment_account(uid, account_id)

        results = await asyncio.gather(*(
            self.store.remove(f"/events/{event_id}") for event_id in event_ids
        ), return_exceptions=True)
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            log.error("event_removal_failed", failed=len(failures), events=len(event_ids))
            raise failures[0]

        await self.store.remove(f"/users/{uid}")

        await self.identity.delete_user(uid)

        log.info("account_deleted")
