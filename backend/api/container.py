# api/container.py
# ============================================================================
# DJTUNEZ BACKEND: SERVICE CONTAINER
# ============================================================================
# Long-lived clients built once at startup and shared by every request
# ============================================================================

from dataclasses import dataclass
from typing import Optional

import structlog

from pipeline import (
    AccountDeletionOrchestrator,
    IProcessedEventStore,
    PaymentConfirmationDispatcher,
    QueueWriter,
    RequestIntake,
)
from services import (
    EventCatalog,
    FirebaseIdentityProvider,
    IIdentityProvider,
    PaymentProvider,
    SpotifyTokenClient,
)
from storage import FirebaseDocumentStore, IDocumentStore, initialize_firebase_app

logger = structlog.get_logger(component="container")


@dataclass
class ServiceContainer:
    store: IDocumentStore
    identity: IIdentityProvider
    payments: PaymentProvider
    spotify: SpotifyTokenClient
    catalog: EventCatalog
    queue_writer: QueueWriter
    dispatcher: PaymentConfirmationDispatcher
    intake: RequestIntake
    deletion: AccountDeletionOrchestrator

    @classmethod
    def from_clients(
        cls,
        store: IDocumentStore,
        identity: IIdentityProvider,
        payments: PaymentProvider,
        spotify: Optional[SpotifyTokenClient] = None,
        processed_events: Optional[IProcessedEventStore] = None,
    ) -> "ServiceContainer":
        """Wire the pipeline around the three external clients."""
        queue_writer = QueueWriter(store)
        return cls(
            store=store,
            identity=identity,
            payments=payments,
            spotify=spotify or SpotifyTokenClient(),
            catalog=EventCatalog(store),
            queue_writer=queue_writer,
            dispatcher=PaymentConfirmationDispatcher(
                payments, store, queue_writer, processed_events=processed_events
            ),
            intake=RequestIntake(store, payments, queue_writer),
            deletion=AccountDeletionOrchestrator(store, payments, identity),
        )

    @classmethod
    def build_default(cls) -> "ServiceContainer":
        """Firebase + Stripe + Spotify from environment configuration."""
        firebase_app = initialize_firebase_app()
        container = cls.from_clients(
            store=FirebaseDocumentStore(app=firebase_app),
            identity=FirebaseIdentityProvider(app=firebase_app),
            payments=PaymentProvider(),
        )
        logger.info("services_initialized")
        return container

    async def close(self):
        await self.spotify.close()
