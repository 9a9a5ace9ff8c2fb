# util/types.py
from typing import Literal


# Flow: Narrow types for NDJSON parse events.
EventType = Literal["progress", "report", "result", "error", "done"]
