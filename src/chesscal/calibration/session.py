"""
Calibration session state machine.

A Session is an immutable value. The functions in this module take a
session plus the inputs of one loop iteration and return the next session,
so the accumulation logic runs without a camera or a display.

States::

    AWAITING_MODE -> ACCUMULATING        -> READY -> LIVE_UNDISTORT -> DONE
                  -> LOADING_PRESET_BAD  -> READY
                  -> LOADING_PRESET_GOOD -> READY
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from ..utils.data_structures import BoardGeometry, Intrinsics, Observation, Sample


class State(Enum):
    AWAITING_MODE = "awaiting_mode"
    ACCUMULATING = "accumulating"
    LOADING_PRESET_BAD = "loading_preset_bad"
    LOADING_PRESET_GOOD = "loading_preset_good"
    READY = "ready"
    LIVE_UNDISTORT = "live_undistort"
    DONE = "done"


class Mode(Enum):
    GENERATE = "generate"
    PRESET_BAD = "preset_bad"
    PRESET_GOOD = "preset_good"


class Action(Enum):
    """What the outer loop should do after an accumulation step."""
    SKIP = "skip"  # No frame this iteration
    CONTINUE = "continue"  # Frame processed, nothing accepted
    ACCEPTED = "accepted"  # New sample stored
    SOLVE = "solve"  # Target count reached, run the solver
    ABORT = "abort"  # Quit pressed, samples discarded


MODE_STATES = {
    Mode.GENERATE: State.ACCUMULATING,
    Mode.PRESET_BAD: State.LOADING_PRESET_BAD,
    Mode.PRESET_GOOD: State.LOADING_PRESET_GOOD,
}

DEFAULT_CONTROLS = {
    'generate': '1',
    'preset_bad': '2',
    'preset_good': '3',
    'quit': 'q',
}


@dataclass(frozen=True)
class Session:
    """Everything the controller knows about the current calibration run."""
    board: BoardGeometry
    target_count: int = 20
    min_capture_interval: float = 1.0  # seconds
    state: State = State.AWAITING_MODE
    mode: Optional[Mode] = None
    samples: Tuple[Sample, ...] = field(default_factory=tuple)
    last_accepted: Optional[float] = None  # Clock value of the last accepted sample
    image_size: Optional[Tuple[int, int]] = None  # Original frame (width, height)
    intrinsics: Optional[Intrinsics] = None

    def __post_init__(self):
        if self.target_count <= 0:
            raise ValueError(f"Target sample count must be positive, got {self.target_count}")
        if self.min_capture_interval < 0:
            raise ValueError(f"Capture interval must not be negative, got {self.min_capture_interval}")

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    @property
    def is_complete(self) -> bool:
        """True once exactly target_count samples have been accepted."""
        return self.sample_count == self.target_count


def mode_for_key(key: Optional[str], controls=None) -> Optional[Mode]:
    """
    Map a key press to a calibration mode.

    Args:
        key: Pressed character or None
        controls: Key bindings (defaults to '1', '2', '3')

    Returns:
        Selected mode, or None if the key selects nothing
    """
    if key is None:
        return None
    controls = {**DEFAULT_CONTROLS, **(controls or {})}
    # Unquoted YAML keys such as 1 load as ints
    bindings = {
        str(controls['generate']): Mode.GENERATE,
        str(controls['preset_bad']): Mode.PRESET_BAD,
        str(controls['preset_good']): Mode.PRESET_GOOD,
    }
    return bindings.get(key)


def select_mode(session: Session, key: Optional[str], controls=None) -> Session:
    """Leave AWAITING_MODE if the key selects a mode; otherwise return the session unchanged."""
    if session.state is not State.AWAITING_MODE:
        raise ValueError(f"Mode already selected (state={session.state.value})")
    mode = mode_for_key(key, controls)
    if mode is None:
        return session
    return replace(session, mode=mode, state=MODE_STATES[mode])


def accumulate_step(session: Session, observation: Optional[Observation], key: Optional[str],
                    now: float, quit_key: str = 'q') -> Tuple[Session, Action]:
    """
    Advance the accumulation loop by one iteration.

    Args:
        session: Session in the ACCUMULATING state
        observation: Processed frame, or None if no frame was acquired
        key: Key pressed during this iteration, or None
        now: Current clock value in seconds
        quit_key: Key that aborts calibration

    Returns:
        (next session, action for the outer loop)
    """
    if session.state is not State.ACCUMULATING:
        raise ValueError(f"Not accumulating (state={session.state.value})")
    if session.is_complete:
        raise ValueError("Session already holds the target number of samples")

    if key is not None and key == quit_key:
        aborted = replace(session, state=State.READY, samples=(), last_accepted=None, intrinsics=None)
        return aborted, Action.ABORT

    if observation is None:
        return session, Action.SKIP

    session = replace(session, image_size=tuple(observation.image_size))

    if not observation.found:
        return session, Action.CONTINUE

    if session.last_accepted is not None and now - session.last_accepted < session.min_capture_interval:
        return session, Action.CONTINUE

    sample = Sample.from_corners(observation.corners, session.board)
    session = replace(session, samples=session.samples + (sample,), last_accepted=now)

    if session.is_complete:
        return session, Action.SOLVE
    return session, Action.ACCEPTED


def complete(session: Session, intrinsics: Optional[Intrinsics]) -> Session:
    """
    Move to READY with solved or loaded intrinsics.

    Args:
        session: Session that finished accumulating or loading a preset
        intrinsics: Parameters, or None if none could be obtained
    """
    if session.state is State.ACCUMULATING and not session.is_complete:
        raise ValueError(
            f"Cannot solve with {session.sample_count} of {session.target_count} samples"
        )
    if session.state not in (State.ACCUMULATING, State.LOADING_PRESET_BAD, State.LOADING_PRESET_GOOD):
        raise ValueError(f"Nothing to complete (state={session.state.value})")
    return replace(session, state=State.READY, intrinsics=intrinsics)


def start_live(session: Session) -> Session:
    """Move from READY to LIVE_UNDISTORT."""
    if session.state is not State.READY:
        raise ValueError(f"Not ready (state={session.state.value})")
    return replace(session, state=State.LIVE_UNDISTORT)


def finish(session: Session) -> Session:
    """Move from LIVE_UNDISTORT to DONE."""
    if session.state is not State.LIVE_UNDISTORT:
        raise ValueError(f"Not in live view (state={session.state.value})")
    return replace(session, state=State.DONE)
