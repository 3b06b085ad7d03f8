import asyncio
import logging
import sys

from stream_console import (
    MediaConsole,
    SettingsStore,
    WebSocketSession,
    WebSocketStreamEngine,
)


class ByteCounter:
    """Stands in for a video view: counts the bytes it would render."""

    def __init__(self):
        self.total = 0
        self._unsub = None

    def bind(self, session: WebSocketSession):
        self._unsub = session.on_frame(self._on_frame)

    def unbind(self):
        if self._unsub:
            self._unsub()
            self._unsub = None

    def _on_frame(self, frame):
        self.total += len(frame)


async def main():
    logging.basicConfig(level=logging.DEBUG)
    store = SettingsStore(sys.argv[1] if len(sys.argv) > 1 else "settings.json")
    if len(sys.argv) > 2:
        store.save_entered_address(sys.argv[2])

    console = MediaConsole(WebSocketStreamEngine(), store)
    console.manager.on("state_changed", lambda old, new: print(f"{old} -> {new}"))
    console.manager.on("exhausted", lambda n: print(f"gave up after {n} attempts"))

    await console.start()
    view = ByteCounter()
    print("Camera:", await console.show_camera(view))

    try:
        for _ in range(30):
            await asyncio.sleep(1)
            print("Received", view.total, "bytes")
    finally:
        await console.hide_camera(view)
        await console.shutdown()

asyncio.run(main())
