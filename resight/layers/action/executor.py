"""
Action Executor - Interactions reported as results.

Wraps the session's interaction primitives so a test driver can run a
sequence of steps and inspect outcomes instead of handling exceptions.
Recoverable failures (element not found, point out of bounds) become
failed ``ActionResult`` values; a disconnected surface is fatal and
propagates.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING
import time

from resight.core.errors import ElementNotFound, OutOfBounds
from resight.core.geometry import Vector
from resight.layers.sense.snapshot import Element

if TYPE_CHECKING:
    from resight.core.session import PageSession
    from resight.reporters.flight_recorder import FlightRecorder


@dataclass
class ActionResult:
    """Result of an action execution."""
    success: bool
    action: str
    target: str
    duration_ms: float
    element: Optional[Element] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "action": self.action,
            "target": self.target,
            "duration_ms": round(self.duration_ms, 1),
            "error": self.error,
            "metadata": self.metadata,
        }


class ActionExecutor:
    """
    Execute interactions against re-identified elements.

    Example:
        >>> executor = ActionExecutor(session)
        >>> result = executor.click(button)
        >>> if result.success:
        ...     button = result.element
    """

    def __init__(
        self,
        session: "PageSession",
        max_retries: int = 2,
        recorder: Optional["FlightRecorder"] = None,
    ):
        """
        Args:
            session: PageSession the actions run against
            max_retries: Extra attempts after an ElementNotFound (each
                attempt rescans first)
            recorder: Optional FlightRecorder for the action log
        """
        self.session = session
        self.max_retries = max_retries
        self.recorder = recorder

    def click(self, element: Element) -> ActionResult:
        return self._run("click", element, lambda el: self.session.click_element(el))

    def type_text(self, element: Element, text: str) -> ActionResult:
        result = self._run("type", element, lambda el: self.session.fill_input(el, text))
        result.metadata["text"] = text
        return result

    def hover(self, element: Element) -> ActionResult:
        return self._run("hover", element, lambda el: self.session.move_pointer_into(el))

    def scroll(self, dy: float, dx: float = 0.0) -> ActionResult:
        """Scroll at the pointer position."""
        start_time = time.time()
        try:
            moved = self.session.scroll_at(self.session.pointer, Vector(dx, dy))
        except OutOfBounds as e:
            return self._finish(ActionResult(
                success=False,
                action="scroll",
                target=f"{dx},{dy}",
                duration_ms=(time.time() - start_time) * 1000,
                error=str(e),
            ))
        return self._finish(ActionResult(
            success=moved,
            action="scroll",
            target=f"{dx},{dy}",
            duration_ms=(time.time() - start_time) * 1000,
            error=None if moved else "Scroll made no progress",
        ))

    def _run(self, action: str, element: Element, fn: Callable[[Element], Element]) -> ActionResult:
        start_time = time.time()
        target = element.text or element.path
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                if attempt > 0:
                    self.session.refresh()
                result_element = fn(element)
                return self._finish(ActionResult(
                    success=True,
                    action=action,
                    target=target,
                    duration_ms=(time.time() - start_time) * 1000,
                    element=result_element,
                    metadata={"attempts": attempt + 1},
                ))
            except ElementNotFound as e:
                last_error = e
            except OutOfBounds as e:
                # Retrying without scrolling would hit the same point.
                last_error = e
                break

        return self._finish(ActionResult(
            success=False,
            action=action,
            target=target,
            duration_ms=(time.time() - start_time) * 1000,
            error=str(last_error),
            metadata={"error_type": type(last_error).__name__},
        ))

    def _finish(self, result: ActionResult) -> ActionResult:
        if self.recorder:
            self.recorder.log_action(result)
        return result
