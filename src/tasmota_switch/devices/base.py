"""Base switch interface consumed by host accessory shells."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

StateListener = Callable[[bool], None]
CompletionCallback = Callable[[Optional[Exception]], None]


class BaseSwitch(ABC):
    """Abstract base class for on/off switch devices.

    Hosts only talk to a switch through this interface: read the cached state,
    request a new state, and listen for state changes. This keeps the host
    independent of how the device is reached.
    """

    @property
    @abstractmethod
    def device_type(self) -> str:
        """Return device type identifier (e.g., 'switch')."""
        pass

    @abstractmethod
    def get_cached_state(self) -> bool:
        """Return the locally cached on/off state without touching the network."""
        pass

    @abstractmethod
    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback fired with the new value on every state transition.

        Returns:
            A function that removes the listener
        """
        pass

    @abstractmethod
    async def refresh(self) -> Optional[bool]:
        """Read the device state and reconcile the cache.

        Returns:
            The state reported by the device, or None if the read was inconclusive
        """
        pass

    @abstractmethod
    async def set_state(self, desired: bool) -> None:
        """Apply ``desired`` optimistically and send it to the device."""
        pass

    @abstractmethod
    def request_set(
        self, desired: bool, on_complete: Optional[CompletionCallback] = None
    ) -> Awaitable[None]:
        """Start a write in the background and report completion via ``on_complete``."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Cancel pending work. Safe to call more than once."""
        pass
