"""Service layer: form handling, validation, submission and result interpretation."""

__all__: list[str] = []
