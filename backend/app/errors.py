"""Error taxonomy shared by the validation, search and statistics layers."""

from __future__ import annotations


class ValidationError(ValueError):
    """A query parameter failed parsing or a cross-field check."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{self.message}: {reason}")

    @property
    def message(self) -> str:
        return f"Invalid query parameter: {self.field}"


class CollaboratorError(RuntimeError):
    """The fill index or the relayer directory could not answer a request."""

    def __init__(self, collaborator: str, detail: str) -> None:
        self.collaborator = collaborator
        self.detail = detail
        super().__init__(f"{collaborator} unavailable: {detail}")


__all__ = ["CollaboratorError", "ValidationError"]
