"""Contract for the media element the controller drives."""

from typing import Optional, Protocol


class AudioElement(Protocol):
    """
    Writable media element.

    The controller writes ``src``, ``current_time`` and ``volume`` and calls
    ``play()``/``pause()``. ``play()`` is asynchronous and may raise (autoplay
    restrictions, network errors). The element reports back through the
    controller's ``on_*`` event methods.
    """

    src: Optional[str]
    current_time: float
    volume: float

    async def play(self) -> None: ...

    def pause(self) -> None: ...
