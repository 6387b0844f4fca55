class RelayError(Exception):
    """A request the relay drops and reports. Never fatal to the process."""
    code = "relay_error"

    def __init__(self, message: str, connection_id: str = None):
        super().__init__(message)
        self.message = message
        self.connection_id = connection_id


class DuplicateJoin(RelayError):
    code = "duplicate_join"


class StaleTarget(RelayError):
    code = "stale_target"

    def __init__(self, message: str, connection_id: str = None, target_connection_id: str = None):
        super().__init__(message, connection_id)
        self.target_connection_id = target_connection_id


class MalformedMessage(RelayError):
    code = "malformed_message"
