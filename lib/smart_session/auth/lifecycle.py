# smart_session/auth/lifecycle.py
"""
Session lifecycle state machine for a SMART-on-FHIR client.

Every entry point returns a concurrent.futures.Future and never blocks the
caller. State transitions run on a single-thread "main" executor; network
I/O and teardown waits run on a worker pool and hop back to the main
executor before touching state.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from ..models.config import SmartConfig
from ..models.session import SelectionGuard, Session, SessionState
from ..network import HTTPManagerFactory
from ..utils.logger import logger, mask_token
from .claims import ClaimExtractor
from .collaborators import (
    BrowserUrlOpener,
    NullSiteDataClearer,
    PatientContext,
    ProtocolEngine,
    SiteDataClearer,
    UrlOpener,
)
from .discovery import DiscoveryResolver
from .errors import (
    AuthorizationCancelledError,
    AuthorizationInProgressError,
    InvalidTransitionError,
)
from .identity import IdentityResolver
from .revocation import RevocationCoordinator
from .token_store import TokenStore

Completion = Callable[[bool, Optional[Exception]], None]
SessionListener = Callable[[Session, SessionState], None]

_ALL_STATES = frozenset(SessionState)
_AUTHORIZABLE_STATES = frozenset({
    SessionState.UNAUTHENTICATED,
    SessionState.AUTHENTICATED_NO_PATIENT,
    SessionState.AUTHENTICATED_WITH_PATIENT,
})

# transition name -> states it may be applied from
TRANSITIONS = {
    'authorized': _AUTHORIZABLE_STATES,
    'restored': frozenset({SessionState.UNAUTHENTICATED}),
    'tokens_collected': _ALL_STATES,
    'failed': _ALL_STATES,
    'incomplete': _ALL_STATES,
    'cleared': _ALL_STATES,
}

SELECTION_EXTERNAL = 'external'
SELECTION_ENGINE = 'engine'


@dataclass
class _Flow:
    """Holder of the flow slot; at most one exists at a time"""
    name: str
    result: Future
    completion: Optional[Completion] = None


class SessionLifecycleManager:
    """
    Owns the published session and drives authorize / redirect / logout /
    reselect flows against the protocol engine.
    """

    def __init__(self, config: SmartConfig, engine_factory: Callable[[], ProtocolEngine],
                 token_store: TokenStore,
                 url_opener: Optional[UrlOpener] = None,
                 site_data_clearer: Optional[SiteDataClearer] = None,
                 discovery: Optional[DiscoveryResolver] = None,
                 revocation: Optional[RevocationCoordinator] = None,
                 identity: Optional[IdentityResolver] = None,
                 worker_count: int = 4):
        """
        Initialize the lifecycle manager

        Args:
            config: Client configuration
            engine_factory: Creates a fresh protocol engine; called again on every reset
            token_store: Credential persistence
            url_opener: Opens forced-login and end-session URLs
            site_data_clearer: Clears browser cookies / site data on logout
            discovery: Discovery resolver (built from config when omitted)
            revocation: Revocation coordinator (built from config when omitted)
            identity: Identity resolver
            worker_count: Size of the worker pool for network I/O and teardown waits
        """
        self.config = config
        self.engine_factory = engine_factory
        self.token_store = token_store
        self.url_opener = url_opener or BrowserUrlOpener()
        self.site_data_clearer = site_data_clearer or NullSiteDataClearer()

        if discovery is None or revocation is None:
            http_manager = HTTPManagerFactory.create_for_client(
                config.client_id, timeout=config.request_timeout
            )
            discovery = discovery or DiscoveryResolver(
                config.discovery_url, http_manager, config.discovery_cache_duration
            )
            revocation = revocation or RevocationCoordinator(
                config, http_manager, discovery, self.url_opener
            )
        self.discovery = discovery
        self.revocation = revocation
        self.identity = identity or IdentityResolver()

        self._main = ThreadPoolExecutor(max_workers=1, thread_name_prefix='smart-session-main')
        self._workers = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix='smart-session-worker')

        # Only touched from the main executor
        self._session = Session()
        self._guard = SelectionGuard()
        self._flow: Optional[_Flow] = None
        self._generation = 0
        self._engine = self.engine_factory()

        self._listeners: List[SessionListener] = []
        self._listeners_lock = threading.Lock()

        logger.info(f"SessionLifecycleManager initialized for {config.base_url} (client_id={config.client_id})")

    # ==========================================================================
    # PUBLISHED STATE
    # ==========================================================================

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state(awaiting_callback=self._engine.is_awaiting_callback())

    @property
    def active_flow(self) -> Optional[str]:
        flow = self._flow
        return flow.name if flow else None

    def status(self) -> Dict[str, Any]:
        """Credential-free snapshot for status endpoints"""
        guard = self._guard
        return {
            'state': self.state.value,
            'session': self._session.to_dict(),
            'active_flow': self.active_flow,
            'selection_in_progress': guard.selection_in_progress,
            'external_flow_launched': guard.external_flow_launched,
        }

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener called on the main executor after every committed transition

        Returns:
            Callable that removes the listener
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ==========================================================================
    # ENTRY POINTS
    # ==========================================================================

    def authorize(self, completion: Optional[Completion] = None) -> Future:
        """
        Start an authorization flow from the unauthenticated state

        Authenticated sessions are rejected with InvalidTransitionError;
        use reselect_patient() or force_reauthorize() instead.

        Args:
            completion: Called with (success, error) exactly once

        Returns:
            Future resolving to True when a patient context was established
        """
        return self._dispatch(self._authorize, completion)

    def handle_redirect(self, url: str) -> Future:
        """Forward a redirect URL to the engine; resolves True if it produced a patient context"""
        return self._dispatch(self._handle_redirect, url)

    def logout(self) -> Future:
        return self._dispatch(self._logout)

    def force_reauthorize(self) -> Future:
        """
        Open a prompt=login authorization URL externally, or fall back to authorize()

        Returns:
            Future resolving to True once the external flow was launched, or to
            the authorize() outcome on fallback
        """
        return self._dispatch(self._force_reauthorize)

    def reselect_patient(self, dismiss: Optional[Callable[[], Any]] = None,
                         force_login: bool = False, aggressive_reset: bool = False) -> Future:
        """
        Start a fresh patient selection

        Args:
            dismiss: UI teardown hook; may return a Future or threading.Event signalling completion
            force_login: Open a prompt=login authorization URL instead of the engine flow
            aggressive_reset: Clear the session and recreate the engine first (no revocation)
        """
        return self._dispatch(self._reselect_patient, dismiss, force_login, aggressive_reset)

    def begin_selection_from_ui(self, dismiss: Optional[Callable[[], Any]] = None,
                                force_login: bool = False) -> Future:
        return self._dispatch(self._begin_selection_from_ui, dismiss, force_login)

    def select_patient_non_destructive(self, dismiss: Optional[Callable[[], Any]] = None,
                                       force_login: bool = False) -> Future:
        """Re-run selection after UI teardown, keeping the current tokens"""
        return self._dispatch(self._select_patient_non_destructive, dismiss, force_login)

    def restore_session(self) -> Future:
        """Reload a persisted access token and mark the session authorized"""
        return self._dispatch(self._restore_session)

    def save_token(self) -> bool:
        """Persist the current access token"""
        token = self._session.access_token
        if not token:
            return False
        return self.token_store.set(self.config.token_key, token)

    # ==========================================================================
    # FLOW IMPLEMENTATIONS (main executor)
    # ==========================================================================

    def _authorize(self, result: Future, completion: Optional[Completion]) -> None:
        current = self.state
        if current.is_authenticated:
            # Re-authentication goes through reselect_patient() or force_reauthorize()
            logger.warning(f"authorize() rejected from state {current.value}")
            self._notify(completion, False, InvalidTransitionError('authorize', current))
            self._resolve(result, False)
            return

        self._begin_authorize(result, completion)

    def _begin_authorize(self, result: Future, completion: Optional[Completion]) -> None:
        if self._flow is not None or self._engine.is_awaiting_callback():
            active = self._flow.name if self._flow else 'awaiting_callback'
            logger.warning(f"authorize() rejected: {active} already in progress")
            self._notify(completion, False, AuthorizationInProgressError(active))
            self._resolve(result, False)
            return

        self._claim_flow('authorize', result, completion)
        logger.log_auth_event("authorize", f"state={self.state.value}")
        self._launch_engine_authorization()

    def _handle_redirect(self, result: Future, url: str) -> None:
        awaiting = self._engine.is_awaiting_callback()
        if not awaiting and not self._guard.external_flow_launched:
            logger.debug("Ignoring redirect: no authorization callback pending")
            self._resolve(result, False)
            return

        logger.log_auth_event("redirect", url.split('?')[0])

        # Engine errors surface verbatim to the caller
        handled = self._engine.consume_redirect(url)
        logger.debug(f"Engine consumed redirect: {handled}")

        self._guard.reset()

        self._collect_tokens()
        patient_id = self._resolve_identity()
        if not patient_id:
            self._resolve(result, False)
            return

        self._resolve(result, self._commit_authorized(patient_id))

    def _logout(self, result: Future) -> None:
        logger.log_auth_event("logout", f"state={self.state.value}")

        # Capture before reset(); engines drop their server state on reset
        tokens = self.identity.collect_tokens(self._server_state()) if not self._session.has_tokens else None
        access_token = self._session.access_token or (tokens.access_token if tokens else None)
        id_token = self._session.id_token or (tokens.id_token if tokens else None)

        self._reset_engine()

        # Revocation never gates the clearing below
        if access_token:
            self._spawn(self.revocation.revoke_token, access_token)

        self._clear_session(AuthorizationCancelledError("Authorization cancelled by logout"))

        self._spawn(self._clear_site_data)
        self._spawn(self.revocation.do_rp_initiated_logout, id_token)

        self._resolve(result, None)

    def _force_reauthorize(self, result: Future) -> None:
        url = self._forced_login_url()
        if not url:
            logger.debug("No authorization settings advertised, falling back to engine authorization")
            self._begin_authorize(result, None)
            return

        self._guard.external_flow_launched = True
        self._guard.last_external_flow_target = url
        self._open_external(url)
        logger.log_auth_event("force_reauthorize", "external login opened")
        self._resolve(result, True)

    def _reselect_patient(self, result: Future, dismiss, force_login: bool, aggressive_reset: bool) -> None:
        flow = self._try_claim_flow('reselect', result)
        if flow is None:
            return

        signal = self._dismiss(dismiss)
        if not aggressive_reset:
            self._after_teardown(flow, signal, self.config.reselect_delay, self._run_selection, flow, force_login)
            return

        logger.log_auth_event("reselect", "aggressive reset")
        self._aggressive_reset()
        self._after_teardown(flow, signal, self.config.reset_delay, self._run_selection, flow, force_login)

    def _begin_selection_from_ui(self, result: Future, dismiss, force_login: bool) -> None:
        flow = self._try_claim_flow('begin_selection', result)
        if flow is None:
            return

        signal = self._dismiss(dismiss)
        if self._engine.is_awaiting_callback():
            logger.log_auth_event("begin_selection", "engine still awaiting callback, resetting")
            self._aggressive_reset()
            self._after_teardown(flow, signal, self.config.reset_delay, self._run_selection, flow, force_login)
            return

        self._run_selection(flow, force_login)

    def _select_patient_non_destructive(self, result: Future, dismiss, force_login: bool) -> None:
        flow = self._try_claim_flow('select_non_destructive', result)
        if flow is None:
            return

        signal = self._dismiss(dismiss)
        self._after_teardown(flow, signal, self.config.reselect_delay, self._run_selection, flow, force_login)

    def _restore_session(self, result: Future) -> None:
        token = self.token_store.get(self.config.token_key)
        if not token:
            logger.debug("No persisted access token to restore")
            self._resolve(result, False)
            return

        try:
            self._transition(
                'restored',
                authorized=True,
                access_token=token,
                patient_id=ClaimExtractor.patient_id_from_token(token),
            )
        except InvalidTransitionError as e:
            logger.warning(f"Session not restored: {e}")
            self._resolve(result, False)
            return

        logger.log_token_event("restored", mask_token(token))
        self._resolve(result, True)

    # ==========================================================================
    # SELECTION
    # ==========================================================================

    def _start_patient_selection(self, force_login: bool = False) -> Optional[str]:
        """
        Launch a patient selection

        Returns:
            SELECTION_EXTERNAL, SELECTION_ENGINE, or None when refused
        """
        if self._guard.selection_in_progress or self._engine.is_awaiting_callback():
            logger.debug("Patient selection already in progress, ignoring request")
            return None

        if force_login:
            url = self._forced_login_url()
            if url:
                if self._guard.external_flow_launched and self._guard.last_external_flow_target == url:
                    logger.debug("External login already launched for this URL, not reopening")
                    return None

                self._guard.last_external_flow_target = url
                self._guard.external_flow_launched = True
                self._guard.selection_in_progress = True
                self._open_external(url)
                return SELECTION_EXTERNAL

            logger.debug("No authorization settings for forced login, using engine authorize")

        self._guard.selection_in_progress = True
        self._launch_engine_authorization()
        return SELECTION_ENGINE

    def _run_selection(self, flow: _Flow, force_login: bool) -> None:
        outcome = self._start_patient_selection(force_login)
        if outcome is None:
            self._finish_flow(flow, False)
        elif outcome == SELECTION_EXTERNAL:
            # The outcome arrives later through handle_redirect
            self._finish_flow(flow, True)
        # SELECTION_ENGINE: the flow stays open until the engine reports back

    def _forced_login_url(self) -> Optional[str]:
        """Authorization URL with prompt=login built from the server-advertised settings"""
        try:
            settings = self._engine.auth_settings()
        except Exception as e:
            logger.warning(f"Could not read authorization settings: {e}")
            return None

        authorize_uri = settings.get('authorize_uri') if settings else None
        if not isinstance(authorize_uri, str) or not authorize_uri:
            return None

        parts = urlsplit(authorize_uri)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query.extend([
            ('response_type', 'code'),
            ('client_id', self.config.client_id),
            ('redirect_uri', self.config.redirect_uri),
            ('scope', self.config.scopes),
            ('aud', self.config.base_url),
            ('prompt', 'login'),
        ])
        return urlunsplit(parts._replace(query=urlencode(query, quote_via=quote)))

    # ==========================================================================
    # ENGINE RESULTS
    # ==========================================================================

    def _launch_engine_authorization(self) -> None:
        generation = self._generation

        def callback(patient: Optional[PatientContext], error: Optional[Exception]) -> None:
            self._submit(self._on_engine_result, generation, patient, error)

        try:
            self._engine.begin_authorization(callback)
        except Exception as e:
            logger.error(f"Engine failed to begin authorization: {e}")
            self._on_engine_result(generation, None, e)

    def _on_engine_result(self, generation: int, patient: Optional[PatientContext],
                          error: Optional[Exception]) -> None:
        if generation != self._generation:
            logger.debug("Discarding callback from a replaced protocol engine")
            return

        flow = self._flow
        self._guard.selection_in_progress = False

        if error is not None:
            logger.error(f"Authorization failed: {error}")
            self._transition('failed', authorized=False, patient_id=None)
            self._finish_flow(flow, False, error)
            return

        # The engine may have issued new tokens; they replace the held ones
        self._collect_tokens()

        if patient is not None and patient.id:
            logger.log_auth_event("authorized", f"patient from engine result: {patient.id}")
            self._finish_authorized(flow, patient.id)
            return

        patient_id = self._resolve_identity()
        if patient_id:
            logger.log_auth_event("authorized", f"patient from token/server state: {patient_id}")
            self._finish_authorized(flow, patient_id)
            return

        logger.warning("Authorization returned no patient context, treating as incomplete")
        self._transition('incomplete', authorized=False, patient_id=None)
        self._finish_flow(flow, False)

    def _finish_authorized(self, flow: Optional[_Flow], patient_id: str) -> None:
        try:
            self._transition('authorized', authorized=True, patient_id=patient_id)
        except InvalidTransitionError as e:
            logger.error(f"Authorized transition rejected: {e}")
            self._finish_flow(flow, False, e)
            return

        self.save_token()
        self._finish_flow(flow, True)

    def _commit_authorized(self, patient_id: str) -> bool:
        try:
            self._transition('authorized', authorized=True, patient_id=patient_id)
        except InvalidTransitionError as e:
            logger.warning(f"Authorized transition rejected: {e}")
            return False

        self.save_token()
        return True

    # ==========================================================================
    # IDENTITY
    # ==========================================================================

    def _server_state(self) -> Any:
        try:
            return self._engine.server_state()
        except Exception as e:
            logger.warning(f"Could not read engine server state: {e}")
            return None

    def _collect_tokens(self) -> None:
        """
        Adopt the tokens found in the server state, replacing both held tokens.
        Held tokens are kept only when the server state yields none.
        """
        tokens = self.identity.collect_tokens(self._server_state())
        if not tokens:
            return

        session = self._session
        if (session.access_token, session.id_token) == (tokens.access_token, tokens.id_token):
            return

        self._transition('tokens_collected', access_token=tokens.access_token, id_token=tokens.id_token)

    def _resolve_identity(self) -> Optional[str]:
        session = self._session
        return self.identity.resolve(session.access_token, session.id_token, self._server_state())

    # ==========================================================================
    # RESETS
    # ==========================================================================

    def _reset_engine(self) -> None:
        try:
            self._engine.reset()
        except Exception as e:
            logger.warning(f"Protocol engine reset failed: {e}")

    def _clear_session(self, cancel_error: Optional[Exception] = None) -> None:
        """
        Clear credentials and identity in one replacement, drop the persisted
        token, recreate the engine and reset the guards
        """
        self._generation += 1
        self._transition('cleared')
        self.token_store.delete(self.config.token_key)
        self._engine = self.engine_factory()
        self._guard.reset()

        if cancel_error is not None and self._flow is not None:
            logger.info(f"Cancelling pending {self._flow.name}")
            self._finish_flow(self._flow, False, cancel_error)

    def _aggressive_reset(self) -> None:
        self._reset_engine()
        self._clear_session()
        self._spawn(self._clear_site_data)

    def _clear_site_data(self) -> None:
        self.site_data_clearer.clear_all(lambda: logger.debug("Browser site data cleared"))

    # ==========================================================================
    # TRANSITIONS
    # ==========================================================================

    def _transition(self, name: str, **changes) -> Session:
        """
        Apply a named transition to the published session

        Raises:
            InvalidTransitionError: If the current state does not allow it
        """
        current = self.state
        if current not in TRANSITIONS[name]:
            raise InvalidTransitionError(name, current)

        session = Session() if name == 'cleared' else self._session.evolve(**changes)
        self._session = session

        new_state = self.state
        logger.log_session_event(name, f"{current.value} -> {new_state.value}")
        self._publish(session, new_state)
        return session

    def _publish(self, session: Session, state: SessionState) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(session, state)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    # ==========================================================================
    # FLOW SLOT
    # ==========================================================================

    def _claim_flow(self, name: str, result: Future, completion: Optional[Completion] = None) -> _Flow:
        flow = _Flow(name=name, result=result, completion=completion)
        self._flow = flow
        return flow

    def _try_claim_flow(self, name: str, result: Future) -> Optional[_Flow]:
        if self._flow is not None:
            logger.warning(f"{name} rejected: {self._flow.name} already in progress")
            self._resolve(result, False)
            return None
        return self._claim_flow(name, result)

    def _finish_flow(self, flow: Optional[_Flow], success: bool, error: Optional[Exception] = None) -> None:
        if flow is None or self._flow is not flow:
            return
        self._flow = None
        self._notify(flow.completion, success, error)
        self._resolve(flow.result, success)

    def _resume_flow(self, flow: _Flow, continuation: Callable, args: tuple) -> None:
        if self._flow is not flow:
            logger.debug(f"{flow.name} was superseded during teardown, not resuming")
            return
        try:
            continuation(*args)
        except Exception as e:
            logger.error(f"{flow.name} failed: {e}", exc_info=True)
            self._finish_flow(flow, False, e)

    # ==========================================================================
    # TEARDOWN SEQUENCING
    # ==========================================================================

    def _dismiss(self, dismiss: Optional[Callable[[], Any]]) -> Any:
        """Run the UI dismiss hook; returns its teardown signal, if any"""
        if dismiss is None:
            return None
        try:
            return dismiss()
        except Exception as e:
            logger.warning(f"Dismiss hook failed: {e}")
            return None

    def _after_teardown(self, flow: _Flow, signal: Any, fallback_delay: float,
                        continuation: Callable, *args) -> None:
        """Wait for the teardown signal (or the fallback delay) off the main executor, then resume"""
        def wait_and_resume():
            self._wait_for_teardown(signal, fallback_delay)
            self._submit(self._resume_flow, flow, continuation, args)

        self._spawn(wait_and_resume)

    def _wait_for_teardown(self, signal: Any, fallback_delay: float) -> None:
        if signal is None:
            time.sleep(fallback_delay)
            return

        timeout = self.config.teardown_timeout
        if isinstance(signal, threading.Event):
            finished = signal.wait(timeout)
        elif isinstance(signal, Future):
            try:
                signal.result(timeout=timeout)
                finished = True
            except FutureTimeoutError:
                finished = False
            except Exception as e:
                logger.warning(f"UI teardown reported an error: {e}")
                finished = True
        else:
            logger.debug(f"Unsupported teardown signal {type(signal).__name__}, using fixed delay")
            time.sleep(fallback_delay)
            return

        if not finished:
            logger.warning(f"UI teardown did not complete within {timeout}s, continuing")

    # ==========================================================================
    # EXECUTION
    # ==========================================================================

    def _dispatch(self, fn: Callable, *args) -> Future:
        result: Future = Future()
        if self._submit(self._run_entry, fn, result, args) is None:
            result.set_exception(RuntimeError("SessionLifecycleManager is closed"))
        return result

    def _run_entry(self, fn: Callable, result: Future, args: tuple) -> None:
        try:
            fn(result, *args)
        except Exception as e:
            logger.error(f"{fn.__name__.lstrip('_')} failed: {e}", exc_info=True)
            if self._flow is not None and self._flow.result is result:
                self._flow = None
            if not result.done():
                result.set_exception(e)

    def _submit(self, fn: Callable, *args) -> Optional[Future]:
        """Queue work on the main executor"""
        try:
            future = self._main.submit(fn, *args)
        except RuntimeError as e:
            logger.debug(f"Main executor unavailable, dropping {fn.__name__}: {e}")
            return None
        future.add_done_callback(self._log_failure)
        return future

    def _spawn(self, fn: Callable, *args) -> Optional[Future]:
        """Fire-and-forget work on the worker pool"""
        try:
            future = self._workers.submit(fn, *args)
        except RuntimeError as e:
            logger.debug(f"Worker pool unavailable, dropping {fn.__name__}: {e}")
            return None
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Background task failed: {error}")

    def _open_external(self, url: str) -> None:
        try:
            self.url_opener.open(url)
        except Exception as e:
            logger.error(f"Failed to open external URL: {e}")

    @staticmethod
    def _notify(completion: Optional[Completion], success: bool, error: Optional[Exception]) -> None:
        if completion is None:
            return
        try:
            completion(success, error)
        except Exception as e:
            logger.error(f"Authorization completion handler failed: {e}")

    @staticmethod
    def _resolve(future: Future, value: Any) -> None:
        if not future.done():
            future.set_result(value)

    # ==========================================================================
    # RESOURCES
    # ==========================================================================

    def close(self) -> None:
        """Shut down the executors; a pending flow resolves False with AuthorizationCancelledError"""
        self._workers.shutdown(wait=False)
        self._main.shutdown(wait=True)

        # Nothing mutates state once the main executor has stopped
        if self._flow is not None:
            logger.info(f"Abandoning pending {self._flow.name} on close")
            self._finish_flow(self._flow, False, AuthorizationCancelledError("Session manager closed"))

        logger.debug("SessionLifecycleManager closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
