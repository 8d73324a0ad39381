"""Interface for layout animation loops."""

from abc import ABC, abstractmethod
from typing import Callable


TickListener = Callable[[], None]


class ILayoutLoop(ABC):
    """A recurring layout computation driven by ticks."""

    @abstractmethod
    def start(self) -> None:
        """Start or restart the loop."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the loop; further ticks are ignored until restarted."""
        pass

    @abstractmethod
    def on_tick(self, callback: TickListener) -> Callable[[], None]:
        """Register a per-tick listener; returns a function that removes it."""
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        pass
