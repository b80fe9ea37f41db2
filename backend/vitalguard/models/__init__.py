from vitalguard.models.patient import Patient, VitalsReading, AISummary, DischargeReport

__all__ = ["Patient", "VitalsReading", "AISummary", "DischargeReport"]
