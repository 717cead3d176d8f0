"""JSON codec for stored application records"""

from pydantic import TypeAdapter, ValidationError

from smart_lending.domain.exceptions import DeserializationError
from smart_lending.domain.models import LoanApplication


class ApplicationCodec:
    """Converts LoanApplication aggregates to and from JSON bytes"""

    def __init__(self):
        self._adapter = TypeAdapter(LoanApplication)

    def encode(self, application: LoanApplication) -> bytes:
        return self._adapter.dump_json(application)

    def decode(self, raw: bytes) -> LoanApplication:
        """
        Parse a stored record.

        Raises:
            DeserializationError: On invalid JSON or a record that does not
                match the LoanApplication shape
        """
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise DeserializationError(f"Corrupt application record: {e.error_count()} error(s)") from e


codec = ApplicationCodec()
