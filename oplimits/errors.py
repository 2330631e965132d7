"""Exceptions raised by the operational limits engine."""


class OperationalLimitError(Exception):
    """Base class for engine errors."""


class AttachmentError(OperationalLimitError, ValueError):
    """
    No attachment target could be resolved for a limit record.

    Raised when neither the terminal nor the equipment declared by the
    record resolves to anything in the network. Only the conversion unit
    of that record is invalid; the rest of the stream is unaffected.
    """

    def __init__(self, record_id: str, terminal_id, equipment_id):
        self.record_id = record_id
        self.terminal_id = terminal_id
        self.equipment_id = equipment_id
        super().__init__(
            f"Terminal {terminal_id} or Equipment {equipment_id} "
            f"(operational limit {record_id})"
        )
