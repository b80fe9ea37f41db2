class UnknownPatientError(Exception):
    def __init__(self, patient_id: str):
        self.patient_id = patient_id
        super().__init__(f"Patient {patient_id} not found")


class SummaryShapeError(Exception):
    """The AI service answered, but not in the expected shape."""

    def __init__(self, reason: str, details: dict = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(f"Unexpected AI response: {reason}")
