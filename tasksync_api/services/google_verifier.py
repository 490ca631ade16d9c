import asyncio
import dataclasses
import logging
import typing
import jwt
import tasksync_api.config
import tasksync_api.errors

logger = logging.getLogger(__name__)

_jwks_client: typing.Optional[jwt.PyJWKClient] = None


@dataclasses.dataclass(frozen=True)
class GoogleIdentity:
    google_id: str
    email: str
    name: typing.Optional[str] = None
    avatar: typing.Optional[str] = None
    locale: typing.Optional[str] = None
    domain: typing.Optional[str] = None


def get_jwks_client() -> jwt.PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = jwt.PyJWKClient(tasksync_api.config.settings.google_certs_url)
    return _jwks_client


def _decode_id_token(id_token: str) -> typing.Dict[str, typing.Any]:
    signing_key = get_jwks_client().get_signing_key_from_jwt(id_token)
    return jwt.decode(
        id_token,
        signing_key.key,
        algorithms=["RS256"],
        audience=tasksync_api.config.settings.google_client_id,
        options={"require": ["exp", "iat", "sub"]}
    )


def verify_google_token(id_token: str) -> GoogleIdentity:
    try:
        payload = _decode_id_token(id_token)
    except jwt.PyJWTError as e:
        logger.debug(f"Google ID token rejected: {e}")
        raise tasksync_api.errors.InvalidTokenError("google_token_invalid")

    return identity_from_claims(payload)


def identity_from_claims(payload: typing.Dict[str, typing.Any]) -> GoogleIdentity:
    if not payload.get("email_verified"):
        raise tasksync_api.errors.InvalidTokenError("email_not_verified")

    if payload.get("iss") not in tasksync_api.config.settings.google_issuers:
        raise tasksync_api.errors.InvalidTokenError("invalid_issuer")

    if not payload.get("sub") or not payload.get("email"):
        raise tasksync_api.errors.InvalidTokenError("incomplete_payload")

    return GoogleIdentity(
        google_id=payload["sub"],
        email=payload["email"],
        name=payload.get("name"),
        avatar=payload.get("picture"),
        locale=payload.get("locale"),
        domain=payload.get("hd")
    )


async def verify_google_token_async(id_token: str) -> GoogleIdentity:
    return await asyncio.get_running_loop().run_in_executor(
        None,
        lambda: verify_google_token(id_token)
    )
