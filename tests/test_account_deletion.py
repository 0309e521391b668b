"""Cascade deletion of a DJ account."""
import pytest
import stripe

from conftest import DJ_ACCOUNT, DJ_ID, EVENT_ID
from pipeline import AccountDeletionOrchestrator
from storage import InMemoryDocumentStore


class TestAccountDeletion:
    def test_delete_cascades_everywhere(self, client, store, identity, fake_stripe, dj_headers):
        response = client.delete("/api/user", headers=dj_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        tree = store.snapshot()
        assert DJ_ID not in tree["users"]
        assert "events" not in tree
        assert identity.deleted == [DJ_ID]
        assert fake_stripe.calls_to("Account.delete") == [((DJ_ACCOUNT,), {"api_key": "sk_test_123"})]

    def test_me_alias(self, client, identity, dj_headers):
        assert client.delete("/api/user/me", headers=dj_headers).status_code == 200
        assert identity.deleted == [DJ_ID]

    def test_payment_provider_failure_does_not_block(self, client, store, identity, fake_stripe, dj_headers):
        fake_stripe.failures["Account.delete"] = stripe.APIConnectionError("stripe down")
        response = client.delete("/api/user", headers=dj_headers)
        assert response.status_code == 200
        assert DJ_ID not in store.snapshot()["users"]
        assert identity.deleted == [DJ_ID]

    def test_account_without_stripe_or_events(self, client, store, identity, fake_stripe):
        identity.add_user("dj2", "dj2-token", role="dj")
        response = client.delete("/api/user", headers={"Authorization": "Bearer dj2-token"})
        assert response.status_code == 200
        assert "dj2" not in store.snapshot()["users"]
        assert fake_stripe.calls_to("Account.delete") == []

    async def test_identity_deleted_after_store(self, services, store, identity):
        order = []
        real_remove = store.remove

        async def tracking_remove(path):
            order.append(("store", path))
            await real_remove(path)

        async def tracking_delete(uid):
            order.append(("identity", uid))

        store.remove = tracking_remove
        identity.delete_user = tracking_delete

        await services.deletion.delete_account(DJ_ID)

        assert order[-1] == ("identity", DJ_ID)
        assert ("store", f"/users/{DJ_ID}") in order
        assert ("store", f"/events/{EVENT_ID}") in order
        assert ("store", "/events/ev0") in order

    def test_store_failure_is_500_and_keeps_identity(self, client, store, identity, dj_headers, monkeypatch):
        real_remove = store.remove

        async def failing_remove(path):
            if path == f"/users/{DJ_ID}":
                raise RuntimeError("database unavailable")
            await real_remove(path)

        monkeypatch.setattr(store, "remove", failing_remove)
        response = client.delete("/api/user", headers=dj_headers)
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete account"}
        assert identity.deleted == []
        # Completed steps stay applied
        tree = store.snapshot()
        assert "events" not in tree
        assert DJ_ID in tree["users"]

    async def test_event_removal_failure_lets_siblings_finish(self, services, store, identity, monkeypatch):
        real_remove = store.remove

        async def failing_remove(path):
            if path == f"/events/{EVENT_ID}":
                raise RuntimeError("database unavailable")
            await real_remove(path)

        monkeypatch.setattr(store, "remove", failing_remove)
        with pytest.raises(RuntimeError):
            await services.deletion.delete_account(DJ_ID)

        tree = store.snapshot()
        assert list(tree["events"]) == [EVENT_ID]
        assert DJ_ID in tree["users"]
        assert identity.deleted == []

    async def test_events_stored_as_array(self, payments, identity):
        store = InMemoryDocumentStore({
            "users": {"dj3": {"events": [{"name": "Opening"}, None, {"name": "Closing"}]}},
            "events": {
                "0": {"djId": "dj3"},
                "2": {"djId": "dj3"},
                "ev-other": {"djId": "dj4"},
            },
        })
        orchestrator = AccountDeletionOrchestrator(store, payments, identity)

        await orchestrator.delete_account("dj3")

        assert store.snapshot() == {"events": {"ev-other": {"djId": "dj4"}}}
        assert identity.deleted == ["dj3"]

    def test_fan_cannot_delete(self, client, identity, fan_headers):
        response = client.delete("/api/user", headers=fan_headers)
        assert response.status_code == 403
        assert identity.deleted == []

    def test_no_token(self, client, identity):
        assert client.delete("/api/user").status_code == 401
        assert identity.deleted == []
