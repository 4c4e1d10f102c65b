"""OSC broadcast of solve results to a visualizer.

Publishes the solved scale so radar/heatmap views and synth patches can
follow configuration changes without linking against the solver.

Message layout (all under config.OSC_PREFIX, default "/solver"):
- /generator cents              - solved generator
- /period cents stretch warn    - period, stretch (0 if fixed), 1/0 warning
- /notes c0 c1 ... cN-1         - degree -> cents
- /frequencies f0 f1 ... fN-1   - degree -> Hz
- /interval i j step n d target actual error weight kind skeleton
- /done count                   - end of one result, interval row count
"""

from typing import Optional

from pythonosc import udp_client

from . import config
from .models import IntervalError, ModeAResult
from .solver import notes_to_frequencies


def _interval_args(it: IntervalError) -> list:
    return [
        int(it.i),
        int(it.j),
        int(it.step),
        int(it.target.n),
        int(it.target.d),
        float(it.target_cents),
        float(it.actual_cents),
        float(it.error_cents),
        float(it.weight),
        it.kind.value,
        1 if it.is_skeleton else 0,
    ]


def result_messages(
    result: ModeAResult,
    base_frequency_hz: float,
    prefix: str = config.OSC_PREFIX,
) -> list[tuple[str, list]]:
    """Flatten a result into (address, args) pairs, in send order."""
    period = result.optimized_period_cents
    messages = [
        (f"{prefix}/generator", [float(result.generator_cents)]),
        (f"{prefix}/period", [
            float(period) if period is not None else 0.0,
            float(result.period_stretch_cents or 0.0),
            1 if result.period_stretch_warning else 0,
        ]),
        (f"{prefix}/notes", [float(c) for c in result.notes_cents]),
        (f"{prefix}/frequencies", [
            float(f) for f in notes_to_frequencies(result.notes_cents, base_frequency_hz)
        ]),
    ]
    messages.extend((f"{prefix}/interval", _interval_args(it)) for it in result.intervals)
    messages.append((f"{prefix}/done", [len(result.intervals)]))
    return messages


class SolutionBroadcaster:
    """Sends solve results to a visualizer over OSC (UDP).

    Uses python-osc's SimpleUDPClient. Usable as a context manager.
    """

    def __init__(
        self,
        host: str = config.OSC_HOST,
        port: int = config.BROADCAST_PORT,
        prefix: str = config.OSC_PREFIX,
    ):
        """Initialize the broadcaster.

        Args:
            host: Target host address
            port: Target UDP port of the visualizer
            prefix: Address prefix for every message
        """
        self.host = host
        self.port = port
        self.prefix = prefix
        self._client: Optional[udp_client.SimpleUDPClient] = None

    def open(self) -> None:
        """Open the OSC connection."""
        self._client = udp_client.SimpleUDPClient(self.host, self.port)

    def close(self) -> None:
        """Close the OSC connection."""
        self._client = None

    def send_result(self, result: ModeAResult, base_frequency_hz: float) -> int:
        """Broadcast one solve result.

        Args:
            result: Solve result to publish
            base_frequency_hz: Frequency of degree 0

        Returns:
            Number of messages sent (0 when the connection is closed)
        """
        if self._client is None:
            return 0
        messages = result_messages(result, base_frequency_hz, self.prefix)
        for address, args in messages:
            self._client.send_message(address, args)
        return len(messages)

    @property
    def is_open(self) -> bool:
        """Whether the OSC connection is open."""
        return self._client is not None

    def __enter__(self) -> "SolutionBroadcaster":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


class MockSolutionBroadcaster(SolutionBroadcaster):
    """Mock broadcaster for running without a visualizer.

    Logs all messages instead of sending via OSC.
    """

    def __init__(self, *args, **kwargs):
        """Initialize without creating a UDP client."""
        self.host = kwargs.get("host", config.OSC_HOST)
        self.port = kwargs.get("port", config.BROADCAST_PORT)
        self.prefix = kwargs.get("prefix", config.OSC_PREFIX)
        self.verbose = kwargs.get("verbose", True)
        self._client = None
        self._message_log: list[dict] = []

    def open(self) -> None:
        """Mock open."""
        self._client = "mock"  # type: ignore
        if self.verbose:
            print(f"[MockOSC] Opened connection to {self.host}:{self.port}")

    def close(self) -> None:
        """Mock close."""
        self._client = None
        if self.verbose:
            print("[MockOSC] Connection closed")

    def send_result(self, result: ModeAResult, base_frequency_hz: float) -> int:
        """Log a solve result."""
        if self._client is None:
            return 0
        messages = result_messages(result, base_frequency_hz, self.prefix)
        for address, args in messages:
            self._message_log.append({"address": address, "args": args})
        if self.verbose:
            print(
                f"[MockOSC] {self.prefix} {len(messages)} messages "
                f"(generator {result.generator_cents:.3f}¢)"
            )
        return len(messages)

    def get_log(self) -> list[dict]:
        """Get the message log."""
        return self._message_log.copy()

    def clear_log(self) -> None:
        """Clear the message log."""
        self._message_log.clear()
