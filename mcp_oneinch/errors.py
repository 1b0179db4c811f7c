"""Error types raised by the orchestrator and the services."""

from typing import Iterable


class RoutingError(LookupError):
    """No registered service owns the requested name."""

    kind = "name"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown {self.kind}: {name}")


class UnknownToolError(RoutingError):
    kind = "tool"


class UnknownResourceError(RoutingError):
    kind = "resource"


class UnknownPromptError(RoutingError):
    kind = "prompt"


class MissingParametersError(ValueError):
    """A call omitted one or more required parameters."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required parameters: {', '.join(self.missing)}")


class InvalidBodyError(ValueError):
    """A REST request body is not a JSON object."""
