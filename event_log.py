from typing import List, Optional

HISTORY_LIMIT = 5


class EventLog:
    """Player-facing news feed shared by every subsystem."""

    def __init__(self, first_entry: Optional[str] = None):
        self.log_text = first_entry or ""
        self.log_history: List[str] = [first_entry] if first_entry else []
        self.pending_logs: List[str] = []

    def add(self, text: str):
        self.pending_logs.append(text)
        self.log_text = text
        self.log_history.append(text)
        self.log_history = self.log_history[-HISTORY_LIMIT:]

    def consume(self) -> List[str]:
        logs = list(self.pending_logs)
        self.pending_logs.clear()
        return logs
