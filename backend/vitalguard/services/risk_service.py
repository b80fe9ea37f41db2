"""
Rule-based vitals checks. Always available, no network.

Bounds: heart rate outside [50, 110] bpm, SpO2 below 92 %, temperature above
38 C, systolic above 150 mmHg. Every bound is exclusive.
"""

from typing import Optional
from vitalguard.schemas.enums import StatusLevel
from vitalguard.schemas.patient import VitalsAnalysis, VitalsSample

HEART_RATE_LOW = 50
HEART_RATE_HIGH = 110
SPO2_LOW = 92
TEMPERATURE_HIGH = 38
SYSTOLIC_HIGH = 150

RISK_PERCENT = {
    StatusLevel.CRITICAL: 90,
    StatusLevel.ATTENTION: 60,
    StatusLevel.STABLE: 30,
}


def flag_abnormal_vitals(sample: Optional[VitalsSample]) -> list[str]:
    if sample is None:
        return []
    flags = []
    if sample.heart_rate > HEART_RATE_HIGH or sample.heart_rate < HEART_RATE_LOW:
        flags.append(f"Heart rate {sample.heart_rate} bpm")
    if sample.spo2 < SPO2_LOW:
        flags.append(f"SpO2 {sample.spo2}%")
    if sample.temperature > TEMPERATURE_HIGH:
        flags.append(f"Temperature {sample.temperature} C")
    if sample.systolic_bp > SYSTOLIC_HIGH:
        flags.append(f"Systolic BP {sample.systolic_bp}")
    return flags


def risk_percent(status: StatusLevel) -> int:
    """Display severity derived from the status alone, not from the vitals values."""
    return RISK_PERCENT[StatusLevel(status)]


def classify_by_flags(flags: list[str]) -> StatusLevel:
    if not flags:
        return StatusLevel.STABLE
    if len(flags) == 1:
        return StatusLevel.ATTENTION
    return StatusLevel.CRITICAL


def heuristic_analysis(sample: VitalsSample) -> VitalsAnalysis:
    flags = flag_abnormal_vitals(sample)
    level = classify_by_flags(flags)
    if flags:
        analysis = "Rule-based check flagged: " + "; ".join(flags) + "."
        recommendation = "Reassess the flagged vitals and escalate per ward protocol."
    else:
        analysis = "All vitals within reference ranges."
        recommendation = "Continue routine monitoring."
    return VitalsAnalysis(risk_level=level, analysis=analysis, recommendation=recommendation)
