"""Feature Studio package (studio UI, client-side services and shared models)."""

__all__: list[str] = []
