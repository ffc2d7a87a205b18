from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol, Tuple, Union


DEFAULT_ZOOM_SCALE = 2.0
DEFAULT_EXIT_DELAY = 0.5  # seconds


@dataclass(frozen=True)
class ZoomState:
    """
    Hover-zoom state of one chart.

    Invariants
    ----------
    * ``zoomed`` is False exactly when ``scale == 1`` and the focal point is (0, 0).
    * ``pending_exit`` means one exit timer tagged ``generation`` is outstanding.
    """

    scale: float = 1.0
    focal_x: float = 0.0
    focal_y: float = 0.0
    zoomed: bool = False
    hovered: Optional[int] = None
    pending_exit: bool = False
    generation: int = 0


IDLE = ZoomState()


# ---- events ----

@dataclass(frozen=True)
class Hover:
    index: int


@dataclass(frozen=True)
class Leave:
    pass


@dataclass(frozen=True)
class TimerFired:
    generation: int


ZoomEvent = Union[Hover, Leave, TimerFired]


# ---- effects ----

@dataclass(frozen=True)
class StartTimer:
    delay: float
    generation: int


@dataclass(frozen=True)
class CancelTimer:
    pass


ZoomEffect = Union[StartTimer, CancelTimer]


class ZoomTarget(Protocol):
    def __len__(self) -> int: ...

    def has_neighbour(self, index: int) -> bool: ...

    def base_coords(self, index: int) -> Tuple[float, float]: ...


def transition(
    state: ZoomState,
    event: ZoomEvent,
    chart: ZoomTarget,
    *,
    zoom_scale: float = DEFAULT_ZOOM_SCALE,
    exit_delay: float = DEFAULT_EXIT_DELAY,
) -> Tuple[ZoomState, Tuple[ZoomEffect, ...]]:
    """Pure transition function; timers are requested through the returned effects."""
    if isinstance(event, Hover):
        if not 0 <= event.index < len(chart):
            return state, ()
        effects: Tuple[ZoomEffect, ...] = (CancelTimer(),) if state.pending_exit else ()
        nxt = replace(state, hovered=event.index, pending_exit=False)
        # isolated points keep whatever zoom is already active
        if chart.has_neighbour(event.index):
            fx, fy = chart.base_coords(event.index)
            nxt = replace(nxt, scale=zoom_scale, focal_x=fx, focal_y=fy, zoomed=True)
        return nxt, effects

    if isinstance(event, Leave):
        gen = state.generation + 1
        cancel: Tuple[ZoomEffect, ...] = (CancelTimer(),) if state.pending_exit else ()
        return replace(state, pending_exit=True, generation=gen), cancel + (StartTimer(exit_delay, gen),)

    if isinstance(event, TimerFired):
        if not state.pending_exit or event.generation != state.generation:
            return state, ()
        return replace(IDLE, generation=state.generation), ()

    raise TypeError(f"Unknown zoom event: {event!r}")


# ---- timers ----

class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    def start(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingTimer:
    def start(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        t = threading.Timer(delay, callback)
        t.daemon = True
        t.start()
        return t


class ZoomController:
    """
    Drives ``transition`` for one chart.

    Events are serialized under a lock in arrival order. At most one exit
    timer is outstanding; a hover arriving before it fires cancels it.
    """

    def __init__(
        self,
        chart: ZoomTarget,
        timer: Optional[Timer] = None,
        *,
        zoom_scale: float = DEFAULT_ZOOM_SCALE,
        exit_delay: float = DEFAULT_EXIT_DELAY,
        on_change: Optional[Callable[[ZoomState], None]] = None,
    ) -> None:
        self.chart = chart
        self.timer: Timer = timer or ThreadingTimer()
        self.zoom_scale = zoom_scale
        self.exit_delay = exit_delay
        self.on_change = on_change

        self._state = IDLE
        self._handle: Optional[TimerHandle] = None
        self._lock = threading.RLock()

    @property
    def state(self) -> ZoomState:
        return self._state

    def hover(self, index: int) -> ZoomState:
        return self.dispatch(Hover(index))

    def leave(self) -> ZoomState:
        return self.dispatch(Leave())

    def dispatch(self, event: ZoomEvent) -> ZoomState:
        with self._lock:
            if isinstance(event, TimerFired) and event.generation == self._state.generation:
                self._handle = None
            nxt, effects = transition(
                self._state,
                event,
                self.chart,
                zoom_scale=self.zoom_scale,
                exit_delay=self.exit_delay,
            )
            for effect in effects:
                self._apply(effect)
            changed = nxt != self._state
            self._state = nxt

        if changed and self.on_change:
            self.on_change(nxt)
        return nxt

    def close(self) -> None:
        with self._lock:
            self._cancel_pending()

    # ---- internal ----

    def _apply(self, effect: ZoomEffect) -> None:
        if isinstance(effect, CancelTimer):
            self._cancel_pending()
        elif isinstance(effect, StartTimer):
            self._cancel_pending()
            gen = effect.generation
            self._handle = self.timer.start(effect.delay, lambda: self.dispatch(TimerFired(gen)))

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
