"""ViewStateMachine: owns the view state and runs the interactive loop.

The machine is the single writer of the state aggregate. Input events,
intents and dispatcher results all arrive on one asyncio queue and are
applied strictly in arrival order; each is reduced to a new state plus
effects, and the effects are performed here (dispatching work, cancelling
it, persisting defaults, opening URLs, quitting).

Example usage:
    machine = ViewStateMachine(lambda: api, settings=settings, preferences=store)
    await machine.bootstrap()          # raises SessionError if the session fails
    await machine.run(render=print_snapshot)
"""

from __future__ import annotations

import asyncio
import typing
import webbrowser
from collections.abc import Callable
from typing import Any

from ghprojects.core.config.preferences import PreferenceStore
from ghprojects.core.config.settings import AppSettings
from ghprojects.core.logging import SessionContext, get_logger, set_context, with_context
from ghprojects.exceptions import PreferencesError, SessionError
from ghprojects.execution.dispatcher import CommandDispatcher, RetryProgress, TerminalMessage
from ghprojects.execution.operations import ApiProvider, OperationBuilder
from ghprojects.execution.retry import RetryExecutor
from ghprojects.ui.events import (
    CancelDispatch,
    Dispatch,
    Effect,
    Event,
    InitializedOk,
    OpenURL,
    PersistDefault,
    Quit,
)
from ghprojects.ui.reducer import Transition, is_stale, reduce
from ghprojects.ui.state import Snapshot, ViewState

_logger = get_logger("controller")

Renderer = Callable[[Snapshot], None]


class ViewStateMachine:
    """Interprets events through the transition table and performs effects."""

    def __init__(
        self,
        api_provider: ApiProvider,
        *,
        settings: AppSettings | None = None,
        preferences: PreferenceStore | None = None,
        executor: RetryExecutor | None = None,
        open_url: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        self.settings = settings or AppSettings()
        self.preferences = preferences
        # None is the stop sentinel
        self.inbox: asyncio.Queue[Event | None] = asyncio.Queue()
        executor = executor or RetryExecutor()
        self.operations = OperationBuilder(api_provider, self.settings, executor)
        self.dispatcher = CommandDispatcher(self.inbox, executor)
        self.state = ViewState(
            defaults=preferences.defaults if preferences is not None else {},
            min_search_chars=self.settings.min_search_chars,
        )
        self._api_provider = api_provider
        self._open_url = open_url
        self._session = SessionContext(component="ui")

    async def bootstrap(self) -> InitializedOk:
        """Establish the remote session and queue ``InitializedOk``.

        Raises:
            SessionError: If the API cannot be created or the viewer cannot
                be resolved. Nothing else is fatal.
        """
        try:
            api = self._api_provider()
            username = await api.get_viewer()
        except Exception as e:
            _logger.error("controller.session_failed", error=str(e))
            raise SessionError(f"could not establish a GitHub session: {e}") from e

        try:
            orgs = await api.list_organizations(username)
        except Exception as e:
            _logger.warning("controller.organizations_unavailable", user=username, error=str(e))
            orgs = []

        event = InitializedOk(username=username, orgs=tuple(orgs))
        _logger.info("controller.session_ready", user=username, orgs=len(event.orgs))
        self.post(event)
        return event

    def post(self, event: Event) -> None:
        """Queue an event for the loop."""
        self.inbox.put_nowait(event)

    def stop(self) -> None:
        """End ``run`` after the events already queued, as if quit were accepted."""
        self.inbox.put_nowait(None)

    def apply(self, event: Event) -> Transition:
        """Reduce one event and perform its effects. Loop-thread only."""
        before = self.state
        if isinstance(event, (TerminalMessage, RetryProgress)) and is_stale(before, event):
            _logger.debug(
                "controller.stale_result",
                request_id=event.request_id,
                slot=event.slot,
                latest=before.inflight.get(event.slot),
            )

        transition = reduce(before, event)
        self.state = transition.state

        if self.state.screen is not before.screen:
            _logger.debug(
                "controller.transition",
                event=type(event).__name__,
                from_screen=before.screen.value,
                to_screen=self.state.screen.value,
            )
        if self.state.overlay is not None and self.state.overlay is not before.overlay:
            _logger.info(
                "controller.overlay_shown",
                kind=self.state.overlay.kind.value,
                screen=self.state.screen.value,
            )
        self._sync_log_context(before)

        for effect in transition.effects:
            _EFFECT_HANDLERS[type(effect)](self, effect)
        return transition

    async def run(self, render: Renderer | None = None) -> ViewState:
        """Apply queued events until a quit is accepted.

        Returns:
            The final state.
        """
        with with_context(self._session):
            if render is not None:
                render(self.state.snapshot())
            while not self.state.quitting:
                event = await self.inbox.get()
                if event is None:
                    self.dispatcher.abandon()
                    break
                self.apply(event)
                if render is not None:
                    render(self.state.snapshot())
        _logger.info("controller.stopped")
        return self.state

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _dispatch(self, effect: Dispatch) -> None:
        command = effect.command
        self.dispatcher.dispatch(
            self.operations.factory_for(command),
            self.operations.policy_for(command),
            request_id=effect.request_id,
            command=command,
        )

    def _cancel(self, effect: CancelDispatch) -> None:
        self.dispatcher.cancel(effect.request_id)

    def _persist_default(self, effect: PersistDefault) -> None:
        if self.preferences is None:
            return
        if effect.repository_id is None:
            self.preferences.clear_default_repository(effect.project_id)
        else:
            self.preferences.set_default_repository(effect.project_id, effect.repository_id)
        try:
            self.preferences.save()
        except PreferencesError as e:
            # The in-memory default still applies for this session
            _logger.warning("controller.preferences_save_failed", error=str(e))

    def _open(self, effect: OpenURL) -> None:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._open_url, effect.url)
        future.add_done_callback(lambda f: self._on_opened(effect.url, f))

    def _on_opened(self, url: str, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _logger.warning("controller.open_url_failed", url=url, error=str(exc))

    def _quit(self, effect: Quit) -> None:
        self.dispatcher.abandon()

    def _sync_log_context(self, before: ViewState) -> None:
        state = self.state
        before_project = before.project.id if before.project else None
        project_id = state.project.id if state.project else None
        if state.owner == before.owner and project_id == before_project:
            return
        self._session = self._session.with_owner(state.owner).with_project(project_id)
        set_context(self._session)


_EFFECT_HANDLERS: dict[type, Callable[[ViewStateMachine, Any], None]] = {
    Dispatch: ViewStateMachine._dispatch,
    CancelDispatch: ViewStateMachine._cancel,
    PersistDefault: ViewStateMachine._persist_default,
    OpenURL: ViewStateMachine._open,
    Quit: ViewStateMachine._quit,
}


def _check_effects() -> None:
    missing = [t.__name__ for t in typing.get_args(Effect) if t not in _EFFECT_HANDLERS]
    if missing:
        raise TypeError(f"no handler for effect(s): {', '.join(missing)}")


_check_effects()
