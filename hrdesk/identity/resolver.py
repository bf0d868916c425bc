"""
Identity resolver: turns auth sessions into ``(Principal, Profile)`` snapshots.

One resolver per client process. It is the only writer of the identity
state; everything else reads :class:`IdentitySnapshot` values, either via
``resolver.snapshot`` or by subscribing.

Ordering: each auth transition bumps a generation counter and cancels the
lookup still running for the previous one, so a slow lookup for an old
session can never overwrite the state of a newer transition.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from hrdesk.identity.profile import ProfileSnapshot
from hrdesk.identity.session import AuthSession, Principal
from hrdesk.security.permissions import NO_PERMISSIONS, PermissionSet, evaluate

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_TIMEOUT_SECONDS = 5.0


class AuthCollaborator(Protocol):
    async def get_session(self) -> AuthSession | None: ...

    def subscribe(self, listener: Callable[[str, AuthSession | None], None]) -> Callable[[], None]: ...

    async def sign_out(self) -> None: ...


class ProfileLookup(Protocol):
    def __call__(
        self,
        session: AuthSession,
        email: str,
        *,
        org_id: int | None = None,
        client_id: int | None = None,
    ) -> Awaitable[ProfileSnapshot | None]: ...


class SignOutError(Exception):
    """Remote session invalidation failed; local state was cleared anyway."""


@dataclass(frozen=True)
class IdentitySnapshot:
    principal: Principal | None
    profile: ProfileSnapshot | None
    loading: bool = False

    @property
    def authenticated(self) -> bool:
        return self.principal is not None

    @property
    def permissions(self) -> PermissionSet:
        if self.principal is None:
            return NO_PERMISSIONS
        # No resolved profile: evaluate(None) is the lowest-privilege set.
        return evaluate(self.profile.role if self.profile else None)


SIGNED_OUT = IdentitySnapshot(principal=None, profile=None)

SnapshotListener = Callable[[IdentitySnapshot], None]


class IdentityResolver:
    def __init__(
        self,
        auth: AuthCollaborator,
        lookup: ProfileLookup,
        *,
        timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
    ) -> None:
        self._auth = auth
        self._lookup = lookup
        self._timeout = timeout_seconds

        self._snapshot = IdentitySnapshot(principal=None, profile=None, loading=True)
        self._session: AuthSession | None = None
        self._generation = 0
        self._pending: asyncio.Task | None = None
        self._listeners: list[SnapshotListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def snapshot(self) -> IdentitySnapshot:
        return self._snapshot

    @property
    def session(self) -> AuthSession | None:
        return self._session

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._snapshot)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> IdentitySnapshot:
        """Resolve the current session, then follow auth transitions."""

        self._unsubscribe = self._auth.subscribe(self.handle_auth_change)
        try:
            session = await self._auth.get_session()
        except Exception:
            logger.exception("Could not read the current session")
            session = None
        self.handle_auth_change("INITIAL_SESSION", session)
        await self.wait_idle()
        return self._snapshot

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._cancel_pending()

    async def wait_idle(self) -> None:
        """Wait until the lookup for the latest transition (if any) has finished."""
        while self._pending is not None and not self._pending.done():
            task = self._pending
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise

    def handle_auth_change(self, event: str, session: AuthSession | None) -> None:
        """
        Auth transition callback. Must be called from the event loop thread.

        Publishes the principal straight away and starts the profile lookup
        in the background.
        """

        self._generation += 1
        generation = self._generation
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self._session = session

        principal = session.principal if session is not None else None
        logger.debug("Auth transition event=%s generation=%s signed_in=%s", event, generation, principal is not None)

        if principal is None or not principal.email:
            self._publish(IdentitySnapshot(principal=principal, profile=None))
            return

        previous = self._snapshot.profile
        keep = previous if previous is not None and previous.userid == principal.user_id else None
        self._publish(IdentitySnapshot(principal=principal, profile=keep, loading=True))

        self._pending = asyncio.get_running_loop().create_task(self._resolve(generation, session, keep))

    async def sign_out(self) -> None:
        """
        Clear local identity state now, then invalidate the hosted session.
        """

        self._generation += 1
        await self._cancel_pending()
        self._session = None
        self._publish(SIGNED_OUT)

        try:
            await self._auth.sign_out()
        except Exception as exc:
            logger.warning("Remote sign-out failed: %s", exc)
            raise SignOutError(str(exc) or "Error signing out") from exc

    async def _resolve(self, generation: int, session: AuthSession, known: ProfileSnapshot | None) -> None:
        principal = session.principal
        try:
            profile = await asyncio.wait_for(
                self._lookup(
                    session,
                    principal.email,
                    org_id=known.orgid if known else None,
                    client_id=known.clientid if known else None,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Profile lookup timed out after %.1fs user=%s", self._timeout, principal.user_id)
            profile = None
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Profile lookup failed user=%s", principal.user_id)
            profile = None

        if generation != self._generation:
            logger.debug("Discarding stale profile resolution generation=%s current=%s", generation, self._generation)
            return
        self._publish(IdentitySnapshot(principal=principal, profile=profile))

    async def _cancel_pending(self) -> None:
        task, self._pending = self._pending, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _publish(self, snapshot: IdentitySnapshot) -> None:
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
