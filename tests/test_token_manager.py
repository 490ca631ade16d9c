import asyncio
import json
import httpx
import pytest
import tasksync_mobile.config
import tasksync_mobile.errors
import tasksync_mobile.storage
import tasksync_mobile.token_manager


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeApi:
    """Scripted server: counts calls per path and answers from queued responses."""

    def __init__(self):
        self.calls = []
        self.responses = {}
        self.refresh_delay = 0.0

    def queue(self, path: str, *responses):
        self.responses.setdefault(path, []).extend(responses)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path == "/auth/refresh" and self.refresh_delay:
            await asyncio.sleep(self.refresh_delay)
        queued = self.responses.get(request.url.path)
        if not queued:
            return httpx.Response(500, json={"error": "unexpected"})
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, Exception):
            raise response
        return response

    def count(self, path: str) -> int:
        return sum(1 for request in self.calls if request.url.path == path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def store(clock):
    return tasksync_mobile.storage.CredentialStore(
        tasksync_mobile.storage.MemoryStore(),
        tasksync_mobile.storage.MemoryStore(),
        clock=clock
    )


@pytest.fixture
def manager(api, store, clock):
    settings = tasksync_mobile.config.ClientSettings(api_base_url="http://api.test")
    http_client = httpx.AsyncClient(
        base_url="http://api.test",
        transport=httpx.MockTransport(api.handler)
    )
    return tasksync_mobile.token_manager.TokenManager(settings, store, http_client, clock=clock)


def refresh_ok(token: str = "new-access", refresh_token: str = "new-refresh") -> httpx.Response:
    return httpx.Response(200, json={"token": token, "refreshToken": refresh_token, "expiresIn": 900})


def expired() -> httpx.Response:
    return httpx.Response(401, json={"error": "Token expired", "code": "TOKEN_EXPIRED", "details": {}})


async def log_in(store):
    await store.store_session("old-access", "old-refresh", {"id": 1, "email": "a@example.com"})


class TestGetAccessToken:
    @pytest.mark.asyncio
    async def test_fresh_token_returned_without_network(self, manager, store, api, clock):
        await log_in(store)
        clock.now += 60

        assert await manager.get_access_token() == "old-access"
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_stale_token_refreshed_first(self, manager, store, api, clock):
        await log_in(store)
        api.queue("/auth/refresh", refresh_ok())
        clock.now += 14 * 60 + 1

        assert await manager.get_access_token() == "new-access"
        assert await store.get_refresh_token() == "new-refresh"
        assert await store.get_token_timestamp() == clock.now
        assert json.loads(api.calls[0].content) == {"refreshToken": "old-refresh"}

    @pytest.mark.asyncio
    async def test_failed_refresh_returns_none(self, manager, store, api, clock):
        await log_in(store)
        api.queue("/auth/refresh", httpx.Response(401, json={"code": "REFRESH_FAILED"}))
        clock.now += 15 * 60

        assert await manager.get_access_token() is None
        assert await store.get_access_token() is None

    @pytest.mark.asyncio
    async def test_logged_out_returns_none(self, manager):
        assert await manager.get_access_token() is None

    @pytest.mark.asyncio
    async def test_concurrent_stale_reads_trigger_one_refresh(self, manager, store, api, clock):
        await log_in(store)
        api.queue("/auth/refresh", refresh_ok())
        api.refresh_delay = 0.05
        clock.now += 15 * 60

        tokens = await asyncio.gather(*[manager.get_access_token() for _ in range(5)])

        assert tokens == ["new-access"] * 5
        assert api.count("/auth/refresh") == 1

    @pytest.mark.asyncio
    async def test_malformed_refresh_body_returns_none(self, manager, store, api, clock):
        await log_in(store)
        api.queue("/auth/refresh", httpx.Response(200, json={"unexpected": 1}))
        clock.now += 15 * 60

        assert await manager.get_access_token() is None
        assert await store.get_refresh_token() is None
        assert await store.get_user() is None


class TestRefreshAccessToken:
    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_request(self, manager, store, api):
        await log_in(store)
        api.queue("/auth/refresh", refresh_ok())
        api.refresh_delay = 0.05

        tokens = await asyncio.gather(*[manager.refresh_access_token() for _ in range(5)])

        assert tokens == ["new-access"] * 5
        assert api.count("/auth/refresh") == 1

    @pytest.mark.asyncio
    async def test_concurrent_failure_reaches_every_caller(self, manager, store, api):
        await log_in(store)
        api.queue("/auth/refresh", httpx.Response(401, json={"code": "REFRESH_FAILED"}))
        api.refresh_delay = 0.05

        results = await asyncio.gather(
            *[manager.refresh_access_token() for _ in range(3)],
            return_exceptions=True
        )

        assert all(isinstance(result, tasksync_mobile.errors.SessionEndedError) for result in results)
        assert api.count("/auth/refresh") == 1
        assert await store.get_refresh_token() is None
        assert await store.get_user() is None

    @pytest.mark.asyncio
    async def test_sequential_refreshes_each_hit_network(self, manager, store, api):
        await log_in(store)
        api.queue("/auth/refresh", refresh_ok("a1", "r1"), refresh_ok("a2", "r2"))

        assert await manager.refresh_access_token() == "a1"
        assert await manager.refresh_access_token() == "a2"
        assert api.count("/auth/refresh") == 2
        assert json.loads(api.calls[1].content) == {"refreshToken": "r1"}

    @pytest.mark.asyncio
    async def test_non_json_refresh_body_ends_session(self, manager, store, api):
        await log_in(store)
        api.queue("/auth/refresh", httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(tasksync_mobile.errors.SessionEndedError):
            await manager.refresh_access_token()
        assert await store.get_access_token() is None

    @pytest.mark.asyncio
    async def test_missing_refresh_token_ends_session(self, manager, api):
        with pytest.raises(tasksync_mobile.errors.SessionEndedError):
            await manager.refresh_access_token()
        assert api.calls == []


class TestAuthenticatedRequest:
    @pytest.mark.asyncio
    async def test_attaches_bearer_token(self, manager, store, api):
        await log_in(store)
        api.queue("/tasks", httpx.Response(200, json={"tasks": []}))

        response = await manager.authenticated_request("GET", "/tasks")

        assert response.status_code == 200
        assert api.calls[0].headers["Authorization"] == "Bearer old-access"

    @pytest.mark.asyncio
    async def test_expired_token_refreshes_and_retries_once(self, manager, store, api):
        await log_in(store)
        api.queue("/tasks", expired(), httpx.Response(200, json={"tasks": []}))
        api.queue("/auth/refresh", refresh_ok())

        response = await manager.authenticated_request("GET", "/tasks")

        assert response.status_code == 200
        assert api.count("/auth/refresh") == 1
        task_calls = [request for request in api.calls if request.url.path == "/tasks"]
        assert [request.headers["Authorization"] for request in task_calls] == [
            "Bearer old-access",
            "Bearer new-access",
        ]

    @pytest.mark.asyncio
    async def test_second_expired_response_is_returned(self, manager, store, api):
        await log_in(store)
        api.queue("/tasks", expired())
        api.queue("/auth/refresh", refresh_ok())

        response = await manager.authenticated_request("GET", "/tasks")

        assert response.status_code == 401
        assert api.count("/tasks") == 2
        assert api.count("/auth/refresh") == 1

    @pytest.mark.asyncio
    async def test_other_401_codes_are_not_retried(self, manager, store, api):
        await log_in(store)
        api.queue("/tasks", httpx.Response(401, json={"code": "INVALID_TOKEN"}))

        response = await manager.authenticated_request("GET", "/tasks")

        assert response.status_code == 401
        assert api.count("/tasks") == 1
        assert api.count("/auth/refresh") == 0

    @pytest.mark.asyncio
    async def test_refresh_failure_during_retry_propagates(self, manager, store, api):
        await log_in(store)
        api.queue("/tasks", expired())
        api.queue("/auth/refresh", httpx.Response(401, json={"code": "REFRESH_FAILED"}))

        with pytest.raises(tasksync_mobile.errors.SessionEndedError):
            await manager.authenticated_request("GET", "/tasks")

    @pytest.mark.asyncio
    async def test_not_authenticated(self, manager):
        with pytest.raises(tasksync_mobile.errors.NotAuthenticatedError):
            await manager.authenticated_request("GET", "/tasks")


class TestLoginLogout:
    @pytest.mark.asyncio
    async def test_login_stores_session(self, manager, store, api):
        user = {"id": 1, "email": "a@example.com", "name": "A", "avatar": None}
        api.queue("/auth/google", httpx.Response(200, json={
            "user": user,
            "token": "access",
            "refreshToken": "refresh",
            "expiresIn": 900
        }))

        result = await manager.login_with_google("google-id-token", {"platform": "ios", "version": "17"})

        assert result == user
        assert await store.get_access_token() == "access"
        assert await manager.is_logged_in() is True
        assert json.loads(api.calls[0].content) == {
            "idToken": "google-id-token",
            "deviceInfo": {"platform": "ios", "version": "17"}
        }

    @pytest.mark.asyncio
    async def test_login_failure(self, manager, store, api):
        api.queue("/auth/google", httpx.Response(401, json={
            "error": "Authentication failed",
            "code": "AUTHENTICATION_FAILED",
            "details": {}
        }))

        with pytest.raises(tasksync_mobile.errors.LoginFailedError) as exc_info:
            await manager.login_with_google("bad")

        assert exc_info.value.code == "AUTHENTICATION_FAILED"
        assert await manager.is_logged_in() is False

    @pytest.mark.asyncio
    async def test_logout_revokes_and_clears(self, manager, store, api):
        await log_in(store)
        api.queue("/auth/logout", httpx.Response(200, json={"message": "Logged out successfully"}))

        await manager.logout()

        assert json.loads(api.calls[0].content) == {"refreshToken": "old-refresh"}
        assert await manager.get_user() is None
        assert await store.get_access_token() is None

    @pytest.mark.asyncio
    async def test_logout_clears_even_when_network_fails(self, manager, store, api):
        await log_in(store)
        api.queue("/auth/logout", httpx.ConnectError("network down"))

        await manager.logout()

        assert await store.get_access_token() is None
        assert await store.get_refresh_token() is None
