from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = ['TRANSACTIONS_CHANGED', 'BUDGETS_CHANGED', 'BUDGET_ALERT', 'Event', 'EventBus', 'budget_alert_handler']


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in list(handlers)]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


TRANSACTIONS_CHANGED = "TRANSACTIONS_CHANGED"
BUDGETS_CHANGED = "BUDGETS_CHANGED"
BUDGET_ALERT = "BUDGET_ALERT"


def budget_alert_handler(event: Event, payload: dict) -> dict:
    category = payload.get("category", "")
    month = payload.get("month", "")
    spent = payload.get("spent", 0)
    limit = payload.get("limit", 0)
    return {
        "alert": f"Budget exceeded for {category} in {month}: {spent:,.2f} / {limit:,.2f}",
        "category": category,
        "month": month,
        "over_budget": spent - limit,
        "ts": event.ts,
    }
