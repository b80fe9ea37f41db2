"""
AI capability for patient summaries, vitals analysis and discharge narratives.

Two implementations share one interface:

- ``TemplateCareAI``: deterministic, offline. Used when AI_PROVIDER=stub and
  as the fallback for every failure of the real client.
- ``BedrockCareAI``: calls the LLM and validates the response shape.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional
from pydantic import ValidationError
from vitalguard.exceptions import SummaryShapeError
from vitalguard.schemas.enums import CareMode, StatusLevel
from vitalguard.schemas.patient import PatientRecord, VitalsAnalysis, VitalsSample
from vitalguard.schemas.summary import PatientSummary
from vitalguard.services.llm_service import BedrockLLM
from vitalguard.services.risk_service import flag_abnormal_vitals, heuristic_analysis

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM = """You are a clinical assistant helping healthcare professionals understand a patient's current status.
Be descriptive and assistive, NOT diagnostic or prescriptive. Summarize only the data provided.
Return JSON with keys: overview (string, 2-3 sentences), keyPoints (array of strings),
recentChanges (array of strings), recommendations (array of care-coordination observations)."""

VITALS_SYSTEM = """You are a clinical monitoring assistant.
Given a patient's context and latest vitals, decide if the patient is STABLE, ATTENTION (needs observation)
or CRITICAL (immediate action). Return JSON with keys: riskLevel, analysis, recommendation."""

DISCHARGE_SYSTEM = """You are a clinical documentation assistant.
Write a short discharge narrative (one paragraph) from the stay data provided. Do not invent facts."""


def latest_sample(record: PatientRecord) -> Optional[VitalsSample]:
    return record.vitals_history[-1] if record.vitals_history else None


def describe_patient(record: PatientRecord) -> str:
    lines = [
        "Patient Information:",
        f"- Name: {record.name}",
        f"- Age: {record.age}",
        f"- Gender: {record.gender}",
        f"- Condition: {record.condition}",
        f"- Room: {record.room_id}",
        f"- Care Mode: {'Continuous Monitoring' if record.care_mode == CareMode.MONITORED else 'Task-Based Care'}",
        f"- Current Status: {record.status_level.value}",
    ]
    if record.diagnosis:
        lines.append(f"- Diagnosis: {record.diagnosis}")
    sample = latest_sample(record)
    if sample:
        lines += [
            f"Latest Vitals ({sample.timestamp.isoformat()}):",
            f"- Heart Rate: {sample.heart_rate} bpm",
            f"- Blood Pressure: {sample.systolic_bp}/{sample.diastolic_bp} mmHg",
            f"- SpO2: {sample.spo2}%",
            f"- Respiratory Rate: {sample.resp_rate} /min",
            f"- Temperature: {sample.temperature} C",
        ]
    return "\n".join(lines)


class CareAI(ABC):
    @abstractmethod
    async def summarize(self, record: PatientRecord) -> PatientSummary:
        ...

    @abstractmethod
    async def analyze_vitals(self, record: PatientRecord, sample: VitalsSample) -> VitalsAnalysis:
        ...

    @abstractmethod
    async def discharge_summary(self, record: PatientRecord, length_of_stay: int) -> str:
        ...


class TemplateCareAI(CareAI):
    async def summarize(self, record: PatientRecord) -> PatientSummary:
        gender = (record.gender or "patient").lower()
        monitored = record.care_mode == CareMode.MONITORED
        flags = flag_abnormal_vitals(latest_sample(record))
        return PatientSummary(
            overview=(
                f"{record.name} is a {record.age}-year-old {gender} with {record.condition}. "
                f"Currently in {record.room_id}."
            ),
            key_points=[
                f"Patient status: {record.status_level.value}",
                "Under continuous monitoring" if monitored else "Care coordination mode",
                f"{len(record.vitals_history)} vitals reading(s) recorded",
            ],
            recent_changes=[f"Abnormal: {f}" for f in flags] or ["No abnormal vitals in the latest reading"],
            recommendations=["Review flagged vitals with the care team"] if flags else ["Continue current care plan"],
        )

    async def analyze_vitals(self, record: PatientRecord, sample: VitalsSample) -> VitalsAnalysis:
        return heuristic_analysis(sample)

    async def discharge_summary(self, record: PatientRecord, length_of_stay: int) -> str:
        return (
            f"{record.name} was discharged after {length_of_stay} day(s) in {record.room_id} "
            f"for {record.condition}. Final status: {record.status_level.value}. "
            f"{len(record.vitals_history)} vitals reading(s) were recorded during the stay."
        )


def parse_summary(raw: dict) -> PatientSummary:
    if not isinstance(raw, dict) or "overview" not in raw:
        raise SummaryShapeError("missing overview", raw if isinstance(raw, dict) else {})
    try:
        return PatientSummary.model_validate(raw)
    except ValidationError as e:
        raise SummaryShapeError(str(e), raw)


def parse_analysis(raw: dict) -> VitalsAnalysis:
    if not isinstance(raw, dict):
        raise SummaryShapeError("not an object")
    level = str(raw.get("riskLevel", raw.get("risk_level", ""))).upper()
    if level not in StatusLevel.__members__:
        raise SummaryShapeError(f"unexpected risk level {level!r}", raw)
    try:
        return VitalsAnalysis(
            risk_level=StatusLevel(level),
            analysis=raw["analysis"],
            recommendation=raw["recommendation"],
        )
    except (KeyError, ValidationError) as e:
        raise SummaryShapeError(str(e), raw)


class BedrockCareAI(CareAI):
    def __init__(self, llm: BedrockLLM, fallback: Optional[CareAI] = None):
        self.llm = llm
        self.fallback = fallback or TemplateCareAI()

    async def summarize(self, record: PatientRecord) -> PatientSummary:
        try:
            raw = await self.llm.generate_structured(describe_patient(record), system=SUMMARY_SYSTEM)
            return parse_summary(raw)
        except Exception as e:
            logger.warning("Summary generation failed for %s, using template: %s", record.id, e)
            return await self.fallback.summarize(record)

    async def analyze_vitals(self, record: PatientRecord, sample: VitalsSample) -> VitalsAnalysis:
        try:
            raw = await self.llm.generate_structured(describe_patient(record), system=VITALS_SYSTEM)
            return parse_analysis(raw)
        except Exception as e:
            logger.warning("Vitals analysis failed for %s, using heuristic: %s", record.id, e)
            return await self.fallback.analyze_vitals(record, sample)

    async def discharge_summary(self, record: PatientRecord, length_of_stay: int) -> str:
        prompt = describe_patient(record) + f"\nLength of stay: {length_of_stay} day(s)"
        try:
            text = (await self.llm.generate(prompt, system=DISCHARGE_SYSTEM, temperature=0.3)).strip()
            if not text:
                raise SummaryShapeError("empty narrative")
            return text
        except Exception as e:
            logger.warning("Discharge summary failed for %s, using template: %s", record.id, e)
            return await self.fallback.discharge_summary(record, length_of_stay)
