"""
OAuth Service

Social login with Naver and Kakao through Authlib's httpx-based
AsyncOAuth2Client:
1. Build the provider authorization URL
2. Exchange the callback code for a token
3. Fetch the provider profile and normalize it to OAuthUserData

Finding or creating the matching account lives in services/accounts.py.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from reviewhub.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class OAuthUserData:
    """
    Normalized user data from OAuth providers.

    Providers return profiles in different shapes; callbacks work with
    this one.
    """

    email: str
    provider: str  # 'naver' or 'kakao'
    provider_key: str
    nickname: str | None = None
    profile_img: str | None = None


# =============================================================================
# Profile parsers
# =============================================================================


def parse_naver_profile(payload: dict) -> OAuthUserData:
    """
    Naver /v1/nid/me:
        {"resultcode": "00", "message": "success",
         "response": {"id": ..., "email": ..., "nickname": ..., "profile_image": ...}}
    """
    if payload.get("resultcode") != "00":
        raise ValueError(f"Naver profile error: {payload.get('message')}")
    profile = payload.get("response") or {}
    email = profile.get("email")
    if not email:
        raise ValueError("Could not get email from Naver")
    return OAuthUserData(
        email=email,
        provider="naver",
        provider_key=str(profile["id"]),
        nickname=profile.get("nickname"),
        profile_img=profile.get("profile_image"),
    )


def parse_kakao_profile(payload: dict) -> OAuthUserData:
    """
    Kakao /v2/user/me:
        {"id": 123, "kakao_account": {"email": ...,
         "profile": {"nickname": ..., "profile_image_url": ...}}}
    """
    account = payload.get("kakao_account") or {}
    email = account.get("email")
    if not email:
        raise ValueError("Could not get email from Kakao")
    profile = account.get("profile") or {}
    return OAuthUserData(
        email=email,
        provider="kakao",
        provider_key=str(payload["id"]),
        nickname=profile.get("nickname"),
        profile_img=profile.get("profile_image_url"),
    )


# =============================================================================
# Providers
# =============================================================================


@dataclass(frozen=True)
class OAuthProvider:
    name: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str | None
    client_id: str | None
    client_secret: str | None
    redirect_uri: str
    parse_profile: Callable[[dict], OAuthUserData]

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=self.scope,
            redirect_uri=self.redirect_uri,
            token_endpoint_auth_method="client_secret_post",
        )


def get_provider(name: str) -> OAuthProvider:
    """
    Get provider configuration by name.

    Raises:
        ValueError: unknown provider
    """
    settings = get_settings()
    if name == "naver":
        return OAuthProvider(
            name="naver",
            authorize_url="https://nid.naver.com/oauth2.0/authorize",
            token_url="https://nid.naver.com/oauth2.0/token",
            userinfo_url="https://openapi.naver.com/v1/nid/me",
            scope=None,
            client_id=settings.naver_client_id,
            client_secret=settings.naver_client_secret,
            redirect_uri=settings.naver_redirect_uri,
            parse_profile=parse_naver_profile,
        )
    if name == "kakao":
        return OAuthProvider(
            name="kakao",
            authorize_url="https://kauth.kakao.com/oauth/authorize",
            token_url="https://kauth.kakao.com/oauth/token",
            userinfo_url="https://kapi.kakao.com/v2/user/me",
            scope="account_email profile_nickname profile_image",
            client_id=settings.kakao_client_id,
            client_secret=settings.kakao_client_secret,
            redirect_uri=settings.kakao_redirect_uri,
            parse_profile=parse_kakao_profile,
        )
    raise ValueError(f"Unknown OAuth provider: {name}")


def is_configured(name: str) -> bool:
    return get_provider(name).configured


def get_authorization_url(name: str, state: str) -> str:
    """
    Generate the provider authorization URL.

    Args:
        name: Provider name
        state: Anti-CSRF state echoed back on the callback

    Returns:
        Authorization URL to redirect the user to
    """
    provider = get_provider(name)
    if not provider.configured:
        raise ValueError(f"{name} OAuth not configured")

    url, _ = provider.client().create_authorization_url(provider.authorize_url, state=state)
    return url


async def fetch_oauth_user(name: str, code: str) -> OAuthUserData:
    """
    Handle an OAuth callback.

    1. Exchange authorization code for access token
    2. Fetch the provider profile
    3. Return normalized user data

    Raises:
        ValueError: token exchange or profile fetch failed
    """
    provider = get_provider(name)
    if not provider.configured:
        raise ValueError(f"{name} OAuth not configured")

    async with provider.client() as client:
        try:
            await client.fetch_token(provider.token_url, code=code)
            response = await client.get(provider.userinfo_url)
        except (AuthlibBaseError, httpx.HTTPError) as e:
            logger.error(f"{name} token exchange failed: {e}")
            raise ValueError("Failed to exchange code for token") from e

    if response.status_code != 200:
        logger.error(f"{name} user info failed: {response.text}")
        raise ValueError("Failed to fetch user info")

    user_data = provider.parse_profile(response.json())
    logger.info(f"{name} OAuth successful for: {user_data.email}")
    return user_data
