from typing import Any, Dict, Mapping, Optional

from swiftnotes.services.preference_rules import apply_defaults, default_preferences


class PreferenceCache:
    """
    Local copy of a user's preferences.

    ``last_confirmed`` is the most recent document the server acknowledged.
    ``displayed`` is what the controls show. The two only meet through
    ``adopt_confirmed``; nothing copies one into the other implicitly.
    """

    def __init__(self):
        self.last_confirmed: Optional[Dict[str, Any]] = None
        self.displayed: Dict[str, Any] = default_preferences()

    def get(self, key: str, default: Any = None) -> Any:
        return self.displayed.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.displayed[key] = value

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.displayed)

    def confirm(self, document: Mapping[str, Any]) -> None:
        """Record a server-acknowledged document without touching ``displayed``."""
        self.last_confirmed = apply_defaults(document)

    def adopt_confirmed(self) -> None:
        """Replace displayed values with the confirmed document (or defaults)."""
        if self.last_confirmed is None:
            self.displayed = default_preferences()
        else:
            self.displayed = dict(self.last_confirmed)

    def show_defaults(self) -> None:
        self.displayed = default_preferences()
