"""
test_http.py - Document server routes and the HTTP clients that call them.
"""

import asyncio
import os

import httpx
import pytest
from fastapi.testclient import TestClient

from jobtrack_sync.auth import HTTPAuthProvider, InMemoryAuthProvider
from jobtrack_sync.container import AppContainer
from jobtrack_sync.errors import AuthError, RemoteStoreError
from jobtrack_sync.models import ApplicationStatus
from jobtrack_sync.remote import HTTPRemoteStore, InMemoryRemoteStore
from jobtrack_sync.remote.server import create_app
from jobtrack_sync.security import TokenManager

BASE_URL = "http://jobtrack.test"


@pytest.fixture
def app(temp_dir):
    application = create_app(os.path.join(temp_dir, "server.db"), secret="test-secret")
    yield application
    application.state.store.close()


@pytest.fixture
def client(app):
    return TestClient(app)


def signup(client, email="sam@example.com", password="hunter22"):
    response = client.post("/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()


def bearer(session):
    return {"Authorization": f"Bearer {session['token']}"}


def application_doc(doc_id="app-1", updated=100, company="Acme"):
    return {
        "id": doc_id,
        "company": company,
        "role": "Engineer",
        "status": "APPLIED",
        "appliedDateEpochMs": 1,
        "updatedAtEpochMs": updated,
        "notes": "",
        "isDeleted": False,
    }


class TestAuthRoutes:
    def test_signup_and_signin(self, client):
        session = signup(client)
        response = client.post("/auth/signin", json={"email": "SAM@example.com", "password": "hunter22"})

        assert response.status_code == 200
        assert response.json()["user_id"] == session["user_id"]

    def test_duplicate_email_conflicts(self, client):
        signup(client)
        response = client.post("/auth/signup", json={"email": "Sam@Example.com", "password": "other"})
        assert response.status_code == 409

    def test_blank_credentials_rejected(self, client):
        response = client.post("/auth/signup", json={"email": "", "password": "x"})
        assert response.status_code == 400

    def test_wrong_password(self, client):
        signup(client)
        response = client.post("/auth/signin", json={"email": "sam@example.com", "password": "nope"})
        assert response.status_code == 401

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"


class TestDocumentRoutes:
    def test_put_get_since_delete(self, client):
        session = signup(client)
        base = f"/users/{session['user_id']}/applications"

        assert client.put(f"{base}/app-1", json=application_doc("app-1", 100), headers=bearer(session)).status_code == 200
        assert client.put(f"{base}/app-2", json=application_doc("app-2", 300), headers=bearer(session)).status_code == 200

        everything = client.get(base, headers=bearer(session)).json()["documents"]
        assert [d["id"] for d in everything] == ["app-1", "app-2"]

        newer = client.get(base, params={"since": 100}, headers=bearer(session)).json()["documents"]
        assert [d["id"] for d in newer] == ["app-2"]

        assert client.delete(f"{base}/app-2", headers=bearer(session)).status_code == 200
        remaining = client.get(base, headers=bearer(session)).json()["documents"]
        assert [d["id"] for d in remaining] == ["app-1"]

    def test_put_replaces_whole_document(self, client):
        session = signup(client)
        url = f"/users/{session['user_id']}/applications/app-1"
        client.put(url, json=application_doc(company="Acme"), headers=bearer(session))
        client.put(url, json=application_doc(company="Acme Corp", updated=200), headers=bearer(session))

        docs = client.get(f"/users/{session['user_id']}/applications", headers=bearer(session)).json()["documents"]
        assert len(docs) == 1
        assert docs[0]["company"] == "Acme Corp"

    def test_missing_token(self, client):
        session = signup(client)
        response = client.get(f"/users/{session['user_id']}/applications")
        assert response.status_code == 401

    def test_bad_token(self, client):
        session = signup(client)
        response = client.get(
            f"/users/{session['user_id']}/applications",
            headers={"Authorization": "Bearer not.a.token"},
        )
        assert response.status_code == 401

    def test_other_users_namespace_forbidden(self, client):
        sam = signup(client)
        kim = signup(client, email="kim@example.com")
        response = client.get(f"/users/{sam['user_id']}/applications", headers=bearer(kim))
        assert response.status_code == 403

    def test_unknown_collection(self, client):
        session = signup(client)
        response = client.get(f"/users/{session['user_id']}/offers", headers=bearer(session))
        assert response.status_code == 404

    def test_path_and_body_id_must_match(self, client):
        session = signup(client)
        response = client.put(
            f"/users/{session['user_id']}/applications/app-9",
            json=application_doc("app-1"),
            headers=bearer(session),
        )
        assert response.status_code == 400

    def test_mistyped_timestamp_rejected(self, client):
        session = signup(client)
        doc = dict(application_doc(), updatedAtEpochMs="later")
        response = client.put(
            f"/users/{session['user_id']}/applications/app-1", json=doc, headers=bearer(session)
        )
        assert response.status_code == 400
        assert "updatedAtEpochMs" in response.json()["detail"]

    def test_memory_store_rejects_mistyped_timestamp(self):
        doc = dict(application_doc(), updatedAtEpochMs="later")
        with pytest.raises(RemoteStoreError):
            asyncio.run(InMemoryRemoteStore().upsert("user-1", "applications", doc))

    def test_interviews_keyed_by_interview_id(self, client):
        session = signup(client)
        doc = {"interviewId": "int-1", "applicationId": "app-1", "updatedAtEpochMs": 5}
        response = client.put(
            f"/users/{session['user_id']}/interviews/int-1", json=doc, headers=bearer(session)
        )
        assert response.status_code == 200


class TestHTTPRemoteStore:
    def test_sends_bearer_token_and_since(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"documents": [application_doc()]})

        async def run():
            store = HTTPRemoteStore(
                BASE_URL, token_provider=lambda: "tok", transport=httpx.MockTransport(handler)
            )
            try:
                return await store.get_since("user 1", "applications", 42)
            finally:
                await store.close()

        documents = asyncio.run(run())
        assert documents[0]["id"] == "app-1"
        request = seen[0]
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.path == "/users/user 1/applications"
        assert request.url.params["since"] == "42"

    def test_http_error_becomes_remote_store_error(self):
        def handler(request):
            return httpx.Response(403, json={"detail": "Permission denied"})

        async def run():
            store = HTTPRemoteStore(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                await store.upsert("user-1", "applications", application_doc())
            finally:
                await store.close()

        with pytest.raises(RemoteStoreError) as exc:
            asyncio.run(run())
        assert exc.value.status_code == 403
        assert "Permission denied" in exc.value.message

    def test_network_error_becomes_remote_store_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def run():
            store = HTTPRemoteStore(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                await store.delete("user-1", "tasks", "t-1")
            finally:
                await store.close()

        with pytest.raises(RemoteStoreError) as exc:
            asyncio.run(run())
        assert exc.value.status_code is None

    @pytest.mark.parametrize("body", [{"items": []}, [], [application_doc()], "documents"])
    def test_malformed_listing(self, body):
        def handler(request):
            return httpx.Response(200, json=body)

        async def run():
            store = HTTPRemoteStore(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                await store.get_since("user-1", "contacts", 0)
            finally:
                await store.close()

        with pytest.raises(RemoteStoreError):
            asyncio.run(run())

    def test_malformed_listing_fails_sync_with_err(self, temp_dir):
        def handler(request):
            if request.method == "GET":
                return httpx.Response(200, json=[])
            return httpx.Response(200, json={"status": "ok"})

        async def run():
            auth = InMemoryAuthProvider()
            store = HTTPRemoteStore(BASE_URL, transport=httpx.MockTransport(handler))
            container = AppContainer.create(os.path.join(temp_dir, "device.db"), store, auth)
            try:
                await auth.sign_up("sam@example.com", "hunter22")
                return await container.coordinator.sync_now(), container.coordinator.state
            finally:
                await container.close()
                await store.close()

        result, state = asyncio.run(run())
        assert not result.is_ok
        assert isinstance(result.error, RemoteStoreError)
        assert state.sync_error is result.error

    def test_document_without_id_rejected_locally(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        async def run():
            store = HTTPRemoteStore(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                await store.upsert("user-1", "interviews", {"id": "wrong-key"})
            finally:
                await store.close()

        with pytest.raises(RemoteStoreError):
            asyncio.run(run())
        assert calls == []


class TestHTTPAuthProvider:
    def test_sign_in_keeps_token(self):
        def handler(request):
            assert request.url.path == "/auth/signin"
            return httpx.Response(200, json={"user_id": "u-1", "token": "tok-1"})

        async def run():
            auth = HTTPAuthProvider(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                return auth, await auth.sign_in("sam@example.com", "pw")
            finally:
                await auth.close()

        auth, result = asyncio.run(run())
        assert result.value == "u-1"
        assert auth.token() == "tok-1"
        assert auth.current_user_id() == "u-1"

    def test_rejected_credentials(self):
        def handler(request):
            return httpx.Response(401, json={"detail": "Invalid email or password"})

        async def run():
            auth = HTTPAuthProvider(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                return auth, await auth.sign_in("sam@example.com", "bad")
            finally:
                await auth.close()

        auth, result = asyncio.run(run())
        assert not result.is_ok
        assert isinstance(result.error, AuthError)
        assert result.error.message == "Invalid email or password"
        assert auth.current_user_id() is None
        assert auth.token() is None

    def test_sign_out_clears_session(self):
        def handler(request):
            return httpx.Response(200, json={"user_id": "u-1", "token": "tok-1"})

        async def run():
            auth = HTTPAuthProvider(BASE_URL, transport=httpx.MockTransport(handler))
            try:
                await auth.sign_up("sam@example.com", "pw")
                await auth.sign_out()
                return auth
            finally:
                await auth.close()

        auth = asyncio.run(run())
        assert auth.token() is None
        assert auth.current_user_id() is None


class TestEndToEnd:
    def test_two_devices_sync_through_server(self, app, temp_dir):
        def connect(name):
            auth = HTTPAuthProvider(BASE_URL, transport=httpx.ASGITransport(app=app))
            store = HTTPRemoteStore(
                BASE_URL, token_provider=auth.token, transport=httpx.ASGITransport(app=app)
            )
            container = AppContainer.create(os.path.join(temp_dir, f"{name}.db"), store, auth)
            return auth, store, container

        async def run():
            laptop_auth, laptop_store, laptop = connect("laptop")
            phone_auth, phone_store, phone = connect("phone")
            try:
                await laptop_auth.sign_up("sam@example.com", "hunter22")
                application = await laptop.add_application(
                    "Acme", "Engineer", ApplicationStatus.APPLIED, 100
                )
                await laptop.add_task(application.id, "Send portfolio")
                pushed = await laptop.coordinator.sync_now()

                await phone_auth.sign_in("sam@example.com", "hunter22")
                pulled = await phone.coordinator.sync_now()
                return (
                    application,
                    pushed,
                    pulled,
                    await phone.applications.get_by_id(application.id),
                )
            finally:
                for container, store, auth in (
                    (laptop, laptop_store, laptop_auth),
                    (phone, phone_store, phone_auth),
                ):
                    await container.close()
                    await store.close()
                    await auth.close()

        application, pushed, pulled, on_phone = asyncio.run(run())
        assert pushed.is_ok
        assert pushed.value.pushed["tasks"] == 1
        assert pulled.is_ok
        assert pulled.value.pulled["applications"] == 1
        assert pulled.value.pulled["tasks"] == 1
        assert on_phone.company == "Acme"
        assert on_phone.needs_sync is False


class TestTokens:
    def test_token_names_its_user(self):
        tokens = TokenManager(b"secret")
        assert tokens.verify_token(tokens.create_token("user-1")) == "user-1"

    def test_tampered_claims_rejected(self):
        tokens = TokenManager(b"secret")
        header, _, signature = tokens.create_token("user-1").split(".")
        forged = TokenManager(b"secret").create_token("user-2").split(".")[1]
        assert tokens.verify_token(f"{header}.{forged}.{signature}") is None

    def test_other_secret_or_issuer_rejected(self):
        token = TokenManager(b"secret").create_token("user-1")
        assert TokenManager(b"other").verify_token(token) is None
        assert TokenManager(b"secret", issuer="elsewhere").verify_token(token) is None

    def test_expired_token_rejected(self):
        tokens = TokenManager(b"secret", ttl_seconds=-1)
        assert tokens.verify_token(tokens.create_token("user-1")) is None

    @pytest.mark.parametrize("token", ["", "abc", "a.b.c.d", "a.b.ü"])
    def test_malformed_token_rejected(self, token):
        assert TokenManager(b"secret").verify_token(token) is None
