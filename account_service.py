from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from starlette.concurrency import run_in_threadpool
from typing import Optional
import logging
import requests

from config import Settings
from coach.feedback import utc_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Account"])

# Tables holding the user's data, deleted before the auth identity
USER_TABLES = ("run_records", "user_achievements")


class SupabaseError(Exception):
    """Supabase REST/Auth call failed."""


class ConfigurationError(Exception):
    """Server is missing a Supabase setting."""


class SupabaseClient:
    """
    Minimal Supabase client over the REST and Auth HTTP APIs.
    Row deletes run with the caller's token, identity deletion with the service role key.
    """

    def __init__(self, url: Optional[str], anon_key: Optional[str],
                 service_role_key: Optional[str] = None,
                 timeout: float = Settings.HTTP_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url = (url or "").rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _user_headers(self, token: str) -> dict:
        return {
            "apikey": self.anon_key or "",
            "Authorization": f"Bearer {token}",
        }

    def get_user_id(self, token: str) -> str:
        """Resolve the session behind a JWT."""
        if not self.url or not self.anon_key:
            raise SupabaseError("SUPABASE_URL / SUPABASE_ANON_KEY not configured")
        try:
            response = self.session.get(
                f"{self.url}/auth/v1/user",
                headers=self._user_headers(token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SupabaseError(f"Session lookup failed: {e}") from e

        if not response.ok:
            raise SupabaseError(f"Session lookup failed: {response.status_code}")

        try:
            user_id = (response.json() or {}).get("id")
        except (ValueError, AttributeError) as e:
            raise SupabaseError("Session lookup returned an invalid body") from e
        if not user_id:
            raise SupabaseError("Session lookup returned no user id")
        return user_id

    def delete_rows(self, token: str, table: str, user_id: str) -> None:
        try:
            response = self.session.delete(
                f"{self.url}/rest/v1/{table}",
                params={"user_id": f"eq.{user_id}"},
                headers=self._user_headers(token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SupabaseError(f"Deleting {table} failed: {e}") from e

        if not response.ok:
            raise SupabaseError(f"Deleting {table} failed: {response.status_code} {response.text[:200]}")

    def delete_auth_user(self, user_id: str) -> None:
        if not self.service_role_key:
            raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY not configured")
        try:
            response = self.session.delete(
                f"{self.url}/auth/v1/admin/users/{user_id}",
                headers={
                    "apikey": self.service_role_key,
                    "Authorization": f"Bearer {self.service_role_key}",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SupabaseError(f"Deleting auth user failed: {e}") from e

        if not response.ok:
            raise SupabaseError(f"Deleting auth user failed: {response.status_code} {response.text[:200]}")


def get_supabase_client() -> SupabaseClient:
    return SupabaseClient(
        Settings.SUPABASE_URL,
        Settings.SUPABASE_ANON_KEY,
        Settings.SUPABASE_SERVICE_ROLE_KEY,
    )


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_user_id(client: SupabaseClient, token: str) -> Optional[str]:
    """
    Session lookup first; if that fails, read 'sub' from the JWT payload
    without verifying the signature.
    """
    try:
        return client.get_user_id(token)
    except SupabaseError as e:
        logger.warning(f"Session lookup failed, decoding JWT payload instead: {e}")

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.error(f"JWT payload decode failed: {e}")
        return None
    return claims.get("sub")


def delete_account(client: SupabaseClient, token: str, user_id: str) -> None:
    """User records first, the auth identity last."""
    for table in USER_TABLES:
        logger.info(f"Deleting {table} for {user_id}")
        client.delete_rows(token, table, user_id)

    logger.info(f"Deleting auth user {user_id}")
    client.delete_auth_user(user_id)


@router.post("/delete-account")
async def delete_account_endpoint(
    authorization: Optional[str] = Header(None),
    client: SupabaseClient = Depends(get_supabase_client)
):
    """
    Deletes all data of the calling user and then the account itself,
    so the email can be registered again.
    """
    token = extract_bearer_token(authorization)
    if not token:
        return JSONResponse(status_code=401, content={"success": False, "error": "Unauthorized"})

    user_id = await run_in_threadpool(resolve_user_id, client, token)
    if not user_id:
        return JSONResponse(status_code=401, content={"success": False, "error": "Could not resolve user"})

    logger.info(f"Deleting account: {user_id}")
    try:
        await run_in_threadpool(delete_account, client, token, user_id)
    except ConfigurationError as e:
        logger.error(f"Account deletion misconfigured: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Server configuration error"})
    except SupabaseError as e:
        logger.error(f"Account deletion failed: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    logger.info(f"Account deleted: {user_id}")
    return {
        "success": True,
        "message": "Account deleted",
        "timestamp": utc_timestamp(),
    }
