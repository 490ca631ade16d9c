import asyncio
import logging
import platform
import time
import typing
import httpx
import tasksync_mobile.config
import tasksync_mobile.errors
import tasksync_mobile.storage

logger = logging.getLogger(__name__)

TOKEN_EXPIRED_CODE = "TOKEN_EXPIRED"


def default_device_info(settings: tasksync_mobile.config.ClientSettings) -> typing.Dict[str, str]:
    return {
        "platform": settings.platform,
        "version": platform.release()
    }


class TokenManager:
    """Owns the client session: login, logout, proactive and reactive refresh.

    Concurrent callers that need a refresh share one in-flight ``asyncio.Task``
    so only a single ``POST /auth/refresh`` is sent per rotation.
    """

    def __init__(
        self,
        settings: tasksync_mobile.config.ClientSettings,
        store: tasksync_mobile.storage.CredentialStore,
        http_client: typing.Optional[httpx.AsyncClient] = None,
        clock: typing.Callable[[], float] = time.time
    ):
        self.settings = settings
        self.store = store
        self.clock = clock
        self.http_client = http_client or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout
        )
        self._refresh_task: typing.Optional[asyncio.Task] = None

    async def close(self) -> None:
        await self.http_client.aclose()

    async def get_access_token(self) -> typing.Optional[str]:
        access_token = await self.store.get_access_token()
        timestamp = await self.store.get_token_timestamp()

        if access_token and timestamp is not None:
            token_age = self.clock() - timestamp
            if token_age > self.settings.token_refresh_margin_seconds:
                try:
                    access_token = await self.refresh_access_token()
                except (tasksync_mobile.errors.SessionEndedError, httpx.HTTPError) as e:
                    logger.error(f"Failed to refresh token: {str(e)}")
                    return None

        return access_token

    async def refresh_access_token(self) -> str:
        task = self._refresh_task
        if task is None:
            task = asyncio.get_running_loop().create_task(self._refresh())
            task.add_done_callback(self._on_refresh_done)
            self._refresh_task = task
        return await asyncio.shield(task)

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _refresh(self) -> str:
        refresh_token = await self.store.get_refresh_token()
        if not refresh_token:
            await self.store.clear()
            raise tasksync_mobile.errors.SessionEndedError("No refresh token available")

        response = await self.http_client.post(
            "/auth/refresh",
            json={"refreshToken": refresh_token}
        )

        if not response.is_success:
            logger.info(f"Refresh rejected with status {response.status_code}, ending session")
            await self.store.clear()
            raise tasksync_mobile.errors.SessionEndedError("Session expired. Please login again.")

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict) or not data.get("token") or not data.get("refreshToken"):
            logger.error("Refresh response is missing tokens, ending session")
            await self.store.clear()
            raise tasksync_mobile.errors.SessionEndedError("Malformed refresh response")

        await self.store.store_tokens(data["token"], data["refreshToken"])
        return data["token"]

    async def _send(
        self,
        method: str,
        path: str,
        access_token: str,
        **kwargs
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {access_token}"
        return await self.http_client.request(method, path, headers=headers, **kwargs)

    @staticmethod
    def _is_token_expired(response: httpx.Response) -> bool:
        if response.status_code != 401:
            return False
        try:
            body = response.json()
        except ValueError:
            return False
        return isinstance(body, dict) and body.get("code") == TOKEN_EXPIRED_CODE

    async def authenticated_request(self, method: str, path: str, **kwargs) -> httpx.Response:
        access_token = await self.get_access_token()
        if not access_token:
            raise tasksync_mobile.errors.NotAuthenticatedError("Not authenticated")

        response = await self._send(method, path, access_token, **dict(kwargs))

        if self._is_token_expired(response):
            access_token = await self.refresh_access_token()
            response = await self._send(method, path, access_token, **dict(kwargs))

        return response

    async def login_with_google(
        self,
        id_token: str,
        device_info: typing.Optional[typing.Dict[str, str]] = None
    ) -> typing.Dict[str, typing.Any]:
        response = await self.http_client.post(
            "/auth/google",
            json={
                "idToken": id_token,
                "deviceInfo": device_info or default_device_info(self.settings)
            }
        )

        if not response.is_success:
            code = None
            message = "Login failed"
            try:
                body = response.json()
                code = body.get("code")
                message = body.get("error") or message
            except ValueError:
                pass
            raise tasksync_mobile.errors.LoginFailedError(
                message,
                status_code=response.status_code,
                code=code
            )

        data = response.json()
        await self.store.store_session(data["token"], data["refreshToken"], data["user"])
        logger.info(f"Logged in as user {data['user'].get('id')}")
        return data["user"]

    async def logout(self) -> None:
        try:
            refresh_token = await self.store.get_refresh_token()
            if refresh_token:
                await self.http_client.post(
                    "/auth/logout",
                    json={"refreshToken": refresh_token}
                )
        except Exception as e:
            logger.error(f"Logout error: {str(e)}")
        finally:
            await self.store.clear()

    async def get_user(self) -> typing.Optional[typing.Dict[str, typing.Any]]:
        return await self.store.get_user()

    async def is_logged_in(self) -> bool:
        access_token = await self.store.get_access_token()
        user = await self.store.get_user()
        return bool(access_token and user)
