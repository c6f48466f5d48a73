"""Shared plumbing for the analytics view services.

Every public view is an ``async`` method taking a mapping of request options
and returning an :class:`AnalyticsResponse`.  The ``analytics_view``
decorator validates the options, resolves the session once per request and
applies the error policy of the view family:

* ``ValidationError`` and ``NotFoundError`` always become a failure envelope.
* lookup views (``lookup=True``) also turn unexpected errors into a failure
  envelope after logging them.
* composite views log unexpected errors and re-raise them.
"""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping

from farmops.core.buckets import Window, resolve_window
from farmops.core.envelope import AnalyticsResponse, fail, ok
from farmops.core.schema import AnalyticsParams, Pitak
from farmops.core.thresholds import Thresholds, get_thresholds
from farmops.core.validation import NotFoundError, ValidationError, parse_params
from farmops.domain import SessionScope
from farmops.infrastructure import RecordStore, SessionResolver, get_session_resolver

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(slots=True)
class ViewContext:
    """Everything a view needs for one request."""

    params: AnalyticsParams
    scope: SessionScope
    now: datetime
    _window: Window | None = field(default=None, repr=False)

    @property
    def session_id(self) -> int | None:
        return self.scope.session_id

    @property
    def window(self) -> Window:
        if self._window is None:
            self._window = resolve_window(self.params, self.now)
        return self._window

    def filters(self, *names: str) -> dict[str, Any]:
        values = {"current_session": self.params.current_session}
        for name in names:
            values[name] = getattr(self.params, name)
        return values


ViewBody = Callable[[Any, ViewContext], Awaitable[Any]]


def analytics_view(message: str, *, lookup: bool = False) -> Callable[[ViewBody], Callable[..., Awaitable[AnalyticsResponse]]]:
    def decorator(func: ViewBody) -> Callable[..., Awaitable[AnalyticsResponse]]:
        name = func.__name__

        @functools.wraps(func)
        async def wrapper(self: "AnalyticsService", params: Mapping[str, Any] | AnalyticsParams | None = None) -> AnalyticsResponse:
            context: ViewContext | None = None
            try:
                parsed = parse_params(params)
                scope = await self.resolve_scope(parsed)
                context = ViewContext(params=parsed, scope=scope, now=self.now())
                data = await func(self, context)
            except ValidationError as exc:
                logger.info("%s rejected: %s", name, exc, extra={"view": name})
                return fail("Invalid parameters", exc.errors, kind="validation", view=name)
            except NotFoundError as exc:
                logger.info("%s: %s", name, exc, extra={"view": name})
                return fail(str(exc), [str(exc)], kind="not_found", view=name)
            except Exception as exc:
                logger.exception("%s failed", name, extra={"view": name})
                if not lookup:
                    raise
                return fail(f"Failed to compute {name.replace('_', ' ')}", [str(exc)], view=name)
            return ok(message, data, view=name, generated_at=context.now, **context.scope.as_meta())

        return wrapper

    return decorator


class AnalyticsService:
    """Base class holding the store, session resolver, clock and thresholds."""

    def __init__(
        self,
        store: RecordStore,
        *,
        resolver: SessionResolver | None = None,
        clock: Clock | None = None,
        thresholds: Thresholds | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._clock = clock or datetime.now
        self._thresholds = thresholds

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds or get_thresholds()

    def now(self) -> datetime:
        return self._clock()

    async def resolve_scope(self, params: AnalyticsParams) -> SessionScope:
        if not params.current_session:
            return SessionScope.unscoped()
        resolver = self._resolver or get_session_resolver()
        session_id = await resolver.current_session_id()
        if session_id is None:
            raise ValidationError("currentSession requested but no current session is configured")
        return SessionScope(session_id)

    # ------------------------------------------------------------------
    # lookups shared by several views
    # ------------------------------------------------------------------
    async def worker_names(self, worker_ids: Iterable[int] | None = None) -> dict[int, str]:
        workers = await self._store.workers.find()
        wanted = None if worker_ids is None else set(worker_ids)
        return {worker.id: worker.name for worker in workers if wanted is None or worker.id in wanted}

    async def pitak_in_scope(self, pitak_id: int, scope: SessionScope) -> Pitak:
        """Return the pitak or raise ``NotFoundError`` when absent or outside the session."""

        pitak = await self._store.pitaks.get(pitak_id)
        if pitak is None:
            raise NotFoundError(f"Pitak {pitak_id} not found")
        if scope.scoped:
            bukid = await self._store.pitaks.get_bukid(pitak.bukid_id) if pitak.bukid_id is not None else None
            if bukid is None or not scope.admits(bukid.session_id):
                raise NotFoundError(f"Pitak {pitak_id} not found in current session")
        return pitak

    async def bukid_name(self, pitak: Pitak) -> str | None:
        if pitak.bukid_id is None:
            return None
        bukid = await self._store.pitaks.get_bukid(pitak.bukid_id)
        return bukid.name if bukid else None

    async def bukid_names(self) -> dict[int, str]:
        names: dict[int, str] = {}
        for pitak in await self._store.pitaks.find():
            if pitak.bukid_id is not None and pitak.bukid_id not in names:
                bukid = await self._store.pitaks.get_bukid(pitak.bukid_id)
                if bukid is not None:
                    names[bukid.id] = bukid.name
        return names
