"""
Client-side violation monitor.

Every observed signal becomes a violation: it is logged locally, counted as
one warning regardless of severity, reported to the server and answered with
an escalating warning message. Reaching ``max_warnings`` terminates the
session from the client side.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from app.core.constants import VIOLATION_SEVERITY, SeverityEnum, ViolationTypeEnum
from app.proctoring.client import ProctoringClient
from app.schemas.profile import FlowMessages, ProctoringConfig

logger = logging.getLogger(__name__)

MAX_WARNINGS = 3
HEARTBEAT_INTERVAL = 30.0
CLOSE_DELAY = 3.0

MODIFIER_ORDER = ("ctrl", "shift", "alt", "meta")
MODIFIER_KEYS = {"Control", "Shift", "Alt", "Meta"}
FUNCTION_KEYS = {f"F{n}" for n in range(1, 13)}


@dataclass
class BrowserSignal:
    """A raw signal observed by the page (DOM event or media callback)."""
    kind: str
    key: Optional[str] = None
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False
    screen_left: Optional[int] = None
    screen_top: Optional[int] = None


@dataclass
class MonitorState:
    """Per-session monitor state, created by start() and dropped by stop()."""
    session_id: str
    started_at: datetime
    violations: List[Dict[str, Any]] = field(default_factory=list)
    warnings: int = 0
    terminated: bool = False
    termination_reason: Optional[str] = None


def keyboard_shortcut(signal: BrowserSignal) -> str:
    keys = [name.capitalize() for name in MODIFIER_ORDER if getattr(signal, name)]
    if signal.key and signal.key not in MODIFIER_KEYS:
        keys.append(signal.key)
    return "+".join(keys)


def is_chord(signal: BrowserSignal) -> bool:
    if not signal.key or signal.key in MODIFIER_KEYS:
        return False
    return signal.key in FUNCTION_KEYS or any(getattr(signal, name) for name in MODIFIER_ORDER)


def violation_severity(violation_type: ViolationTypeEnum) -> SeverityEnum:
    return VIOLATION_SEVERITY.get(violation_type, SeverityEnum.LOW)


class ViolationMonitor:

    def __init__(
        self,
        client: ProctoringClient,
        proctoring: ProctoringConfig,
        messages: FlowMessages,
        *,
        max_warnings: int = MAX_WARNINGS,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        close_delay: float = CLOSE_DELAY,
        captures: Optional[list] = None,
        on_warning: Optional[Callable[[str], Any]] = None,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.client = client
        self.proctoring = proctoring
        self.messages = messages
        self.max_warnings = max_warnings
        self.heartbeat_interval = heartbeat_interval
        self.close_delay = close_delay
        # Anything with an async stop(): recording pipeline, face detector.
        self.captures = list(captures or [])
        self.on_warning = on_warning
        self.on_close = on_close

        self.state: Optional[MonitorState] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._close_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def allowed_shortcuts(self) -> List[str]:
        rule = self.proctoring.violations.get("keyboardShortcuts")
        return rule.allowed if rule else []

    async def start(self, session_id: str) -> MonitorState:
        if self.state is not None:
            raise RuntimeError(f"Monitor already running for session {self.state.session_id}")

        self.state = MonitorState(session_id=session_id, started_at=datetime.now(timezone.utc))
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        await self.client.send_event(session_id, "started", {"startTime": self.state.started_at})
        logger.info(f"Proctoring monitor started for session {session_id}")
        return self.state

    async def stop(self) -> Optional[MonitorState]:
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            await asyncio.gather(self._heartbeat_task, return_exceptions=True)
            self._heartbeat_task = None
        await self.drain()

        state, self.state = self.state, None
        if state:
            logger.info(f"Proctoring monitor stopped for session {state.session_id} ({state.warnings} warnings)")
        return state

    async def drain(self):
        """Wait for in-flight fire-and-forget reports."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _fire(self, coro: Awaitable):
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def classify(self, signal: BrowserSignal) -> Optional[tuple]:
        """Map a browser signal to ``(violation_type, description)``, or None."""
        kind = signal.kind
        if kind == "visibility_hidden":
            return ViolationTypeEnum.TAB_SWITCH, "User switched to another tab"
        if kind == "blur":
            return ViolationTypeEnum.WINDOW_FOCUS_LOSS, "Window lost focus"
        if kind == "copy":
            return ViolationTypeEnum.COPY_PASTE, "Copy operation detected"
        if kind == "paste":
            return ViolationTypeEnum.COPY_PASTE, "Paste operation detected"
        if kind == "context_menu":
            return ViolationTypeEnum.RIGHT_CLICK, "Right-click detected"
        if kind == "keydown":
            if not is_chord(signal):
                return None
            shortcut = keyboard_shortcut(signal)
            if shortcut in self.allowed_shortcuts:
                return None
            return ViolationTypeEnum.KEYBOARD_SHORTCUT, f"Prohibited keyboard shortcut: {shortcut}"
        if kind == "focus":
            if (signal.screen_left is not None and signal.screen_left < 0) or (signal.screen_top is not None and signal.screen_top < 0):
                return ViolationTypeEnum.MULTIPLE_WINDOWS, "Multiple windows detected"
            return None
        if kind == "screen_share_ended":
            return ViolationTypeEnum.TAB_SWITCH, "Screen sharing ended unexpectedly"

        logger.debug(f"Ignoring unknown browser signal: {kind}")
        return None

    async def handle_signal(self, signal: BrowserSignal) -> Optional[Dict[str, Any]]:
        classified = self.classify(signal)
        if classified is None:
            return None
        return await self.report(*classified)

    def warning_message(self, warnings: int) -> str:
        texts = self.proctoring.warnings
        if warnings == 1:
            return texts.first_violation
        if warnings == 2:
            return texts.second_violation
        return texts.final_warning

    async def report(self, violation_type: ViolationTypeEnum, description: str) -> Optional[Dict[str, Any]]:
        """Record a violation and escalate; ignored once the session has ended."""
        state = self.state
        if state is None or state.terminated:
            logger.debug(f"Dropping {violation_type.value} signal, no active monitored session")
            return None

        violation = {
            "type": violation_type.value,
            "timestamp": datetime.now(timezone.utc),
            "description": description,
            "severity": violation_severity(violation_type).value,
        }
        state.violations.append(violation)
        state.warnings += 1
        logger.warning(f"Violation detected in session {state.session_id}: {violation_type.value} ({state.warnings}/{self.max_warnings})")

        self._fire(self.client.report_violation(state.session_id, violation))

        message = self.warning_message(state.warnings)
        if self.on_warning:
            self.on_warning(message)

        if state.warnings >= self.max_warnings:
            await self.terminate("Maximum violations exceeded")
        return violation

    async def terminate(self, reason: str):
        state = self.state
        if state is None or state.terminated:
            return

        state.terminated = True
        state.termination_reason = reason
        logger.warning(f"Assessment terminated for session {state.session_id}: {reason}")

        for capture in self.captures:
            await capture.stop()

        self._fire(self.client.send_event(state.session_id, "terminated", {
            "reason": reason,
            "warnings": state.warnings,
        }))

        if self.on_warning:
            self.on_warning(self.messages.terminated.content)

        self._close_task = asyncio.create_task(self._close_later())

    async def _close_later(self):
        await asyncio.sleep(self.close_delay)
        await self.stop()
        if self.on_close:
            await self.on_close()

    async def _heartbeat_loop(self):
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            state = self.state
            if state is None or state.terminated:
                return
            await self.client.send_event(state.session_id, "heartbeat", {
                "timestamp": datetime.now(timezone.utc),
                "violations": len(state.violations),
                "warnings": state.warnings,
            })
