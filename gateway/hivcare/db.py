"""Supabase client bindings for tables, storage and auth."""

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import structlog
from supabase import Client, ClientOptions, create_client

from .config import settings, TABLES

logger = structlog.get_logger()


class BackendError(Exception):
    """A failed call against the hosted backend."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    @classmethod
    def from_exception(cls, exc: Exception) -> "BackendError":
        message = getattr(exc, "message", None) or str(exc)
        code = getattr(exc, "code", None)
        return cls(str(message), str(code) if code is not None else None)


class SupabaseManager:
    """Thin async facade over the Supabase SDK.

    The service client (service-role key) is used for table, storage and
    admin-auth calls. Password sign-in, sign-up and reset mails go through a
    short-lived anon client so a user session never leaks into the shared
    service client.
    """

    def __init__(self):
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = create_client(
                settings.supabase_url,
                settings.supabase_service_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False),
            )
            logger.info("Supabase client created", url=settings.supabase_url)
        return self._client

    def _public_client(self) -> Client:
        return create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    async def _call(self, operation: str, fn: Callable[[], Any], **context) -> Any:
        """Run a blocking SDK call in a worker thread and normalize errors."""
        try:
            return await asyncio.to_thread(fn)
        except BackendError:
            raise
        except Exception as e:
            error = BackendError.from_exception(e)
            logger.error(
                "Backend call failed",
                operation=operation,
                error=error.message,
                code=error.code,
                **context,
            )
            raise error from e

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def fetch(
        self,
        table: str,
        columns: str = "*",
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        gte: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows from a table with simple filters."""

        def run():
            query = self.client.table(table).select(columns)
            for key, value in (eq or {}).items():
                query = query.eq(key, value)
            for key, values in (in_ or {}).items():
                query = query.in_(key, list(values))
            for key, value in (gte or {}).items():
                query = query.gte(key, value)
            if order:
                query = query.order(order, desc=descending)
            if limit is not None:
                query = query.limit(limit)
            return query.execute()

        response = await self._call("select", run, table=table)
        return list(response.data or [])

    async def fetch_one(self, table: str, **kwargs) -> Optional[Dict[str, Any]]:
        """Return the first matching row or None."""
        kwargs.setdefault("limit", 1)
        rows = await self.fetch(table, **kwargs)
        return rows[0] if rows else None

    async def insert(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._call(
            "insert", lambda: self.client.table(table).insert(values).execute(), table=table
        )
        rows = response.data or []
        if not rows:
            raise BackendError(f"Insert into {table} returned no rows")
        return rows[0]

    async def update(
        self, table: str, values: Dict[str, Any], eq: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        def run():
            query = self.client.table(table).update(values)
            for key, value in eq.items():
                query = query.eq(key, value)
            return query.execute()

        response = await self._call("update", run, table=table)
        return list(response.data or [])

    async def delete(self, table: str, eq: Dict[str, Any]) -> None:
        def run():
            query = self.client.table(table).delete()
            for key, value in eq.items():
                query = query.eq(key, value)
            return query.execute()

        await self._call("delete", run, table=table)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    async def upload_file(
        self, bucket: str, path: str, content: bytes, content_type: str
    ) -> str:
        """Upload an object and return its public URL."""
        storage = self.client.storage.from_(bucket)
        await self._call(
            "storage.upload",
            lambda: storage.upload(
                path=path, file=content, file_options={"content-type": content_type}
            ),
            bucket=bucket,
            path=path,
        )
        return storage.get_public_url(path)

    async def remove_files(self, bucket: str, paths: List[str]) -> None:
        await self._call(
            "storage.remove",
            lambda: self.client.storage.from_(bucket).remove(paths),
            bucket=bucket,
            paths=paths,
        )

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        response = await self._call(
            "auth.sign_in",
            lambda: self._public_client().auth.sign_in_with_password(
                {"email": email, "password": password}
            ),
            email=email,
        )
        session = response.session
        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in,
            "user": {"id": str(response.user.id), "email": response.user.email},
        }

    async def sign_up(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        response = await self._call(
            "auth.sign_up",
            lambda: self._public_client().auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {
                        "data": {"full_name": full_name},
                        "email_redirect_to": settings.app_base_url,
                    },
                }
            ),
            email=email,
        )
        user = response.user
        return {"id": str(user.id) if user else None, "email": email}

    async def sign_out(self, access_token: str) -> None:
        await self._call(
            "auth.sign_out", lambda: self.client.auth.admin.sign_out(access_token)
        )

    async def send_password_reset(self, email: str, redirect_to: str) -> None:
        await self._call(
            "auth.reset_password_for_email",
            lambda: self._public_client().auth.reset_password_for_email(
                email, {"redirect_to": redirect_to}
            ),
            email=email,
        )

    async def generate_recovery_link(self, email: str, redirect_to: str) -> str:
        response = await self._call(
            "auth.generate_link",
            lambda: self.client.auth.admin.generate_link(
                {"type": "recovery", "email": email, "options": {"redirect_to": redirect_to}}
            ),
            email=email,
        )
        return response.properties.action_link

    async def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Resolve an access token against the auth server."""
        response = await self._call(
            "auth.get_user", lambda: self.client.auth.get_user(access_token)
        )
        if response is None or response.user is None:
            return None
        return {"id": str(response.user.id), "email": response.user.email}

    async def update_user(self, user_id: str, attributes: Dict[str, Any]) -> None:
        await self._call(
            "auth.update_user",
            lambda: self.client.auth.admin.update_user_by_id(user_id, attributes),
            user_id=user_id,
        )

    async def update_user_session(self, access_token: str, attributes: Dict[str, Any]) -> None:
        """Update the signed-in user with their own token.

        Unlike the admin update, a new email address is applied only after the
        confirmation mail sent to it is followed.
        """
        url = f"{settings.supabase_url.rstrip('/')}/auth/v1/user"
        headers = {"apikey": settings.supabase_anon_key, "Authorization": f"Bearer {access_token}"}

        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.put(
                    url,
                    json=attributes,
                    headers=headers,
                    params={"redirect_to": settings.app_base_url},
                )
        except httpx.RequestError as e:
            logger.error("Backend call failed", operation="auth.update_user_session", error=str(e))
            raise BackendError("Auth server is unreachable") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = (
                body.get("msg") or body.get("message") or body.get("error_description")
                or "Failed to update account"
            )
            code = body.get("error_code") or body.get("code")
            logger.error(
                "Backend call failed",
                operation="auth.update_user_session",
                status=response.status_code,
                error=message,
            )
            raise BackendError(str(message), str(code) if code is not None else None)

    async def create_user(self, email: str, password: str, full_name: str) -> str:
        response = await self._call(
            "auth.create_user",
            lambda: self.client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "email_confirm": True,
                    "user_metadata": {"full_name": full_name},
                }
            ),
            email=email,
        )
        return str(response.user.id)


# Global backend manager instance
db_manager = SupabaseManager()


async def health_check() -> dict:
    """Perform backend health check."""
    results = {}

    try:
        await db_manager.fetch(TABLES["app_settings"], columns="key", limit=1)
        results["tables"] = "ok"
        results["status"] = "healthy"
    except BackendError as e:
        results["status"] = "unhealthy"
        results["error"] = e.message

    return results
