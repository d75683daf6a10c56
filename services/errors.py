class EventValidationError(Exception):
    """Inbound event is unknown or its payload does not match its record."""

    def __init__(self, event: str, detail: str, reason: str = "invalid_payload"):
        super().__init__(f"{event}: {detail}")
        self.event = event
        self.detail = detail
        self.reason = reason


class SceneNotFound(Exception):
    def __init__(self, project_id: int):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class PersistenceError(Exception):
    """State store unreachable, write failed or timed out."""


class DeliveryError(Exception):
    def __init__(self, connection_id: str):
        super().__init__(f"Connection {connection_id} is closed")
        self.connection_id = connection_id
