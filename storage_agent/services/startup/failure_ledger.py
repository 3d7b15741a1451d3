from datetime import datetime, timezone
from typing import Optional

from ...models import StartupFailure

GENERIC_HINT = "Check the storage agent logs for details."
API_KEY_HINT = "Set ANTHROPIC_API_KEY (or OPENAI_API_KEY / AI_GATEWAY_API_KEY) and restart."
OOM_HINT = "Gateway ran out of memory. Try again."


def derive_hint(message: str) -> str:
    if "ANTHROPIC_API_KEY" in message or "API key" in message:
        return API_KEY_HINT
    if "heap out of memory" in message or "OOM" in message:
        return OOM_HINT
    return GENERIC_HINT


class StartupFailureLedger:
    """Most recent terminal startup failure, kept for the process lifetime."""

    def __init__(self):
        self._failure: Optional[StartupFailure] = None

    def record(self, message: str, hint: Optional[str] = None) -> StartupFailure:
        self._failure = StartupFailure(
            message=message,
            hint=hint or derive_hint(message),
            occurred_at=datetime.now(timezone.utc),
        )
        return self._failure

    def clear(self) -> None:
        self._failure = None

    def current(self) -> Optional[StartupFailure]:
        return self._failure
