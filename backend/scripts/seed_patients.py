"""
Seed the ward with sample patients and a few hours of vitals.
Run with: python -m scripts.seed_patients
Run with: python -m scripts.seed_patients --extra 20  (add synthetic patients)
"""

import argparse
import asyncio
import random
import uuid
from datetime import timedelta
from sqlalchemy import select, func
from vitalguard.clock import utc_now
from vitalguard.database import engine, async_session, Base
from vitalguard.models.patient import Patient, VitalsReading

SAMPLE_PATIENTS = [
    {
        "name": "John Doe",
        "age": 45,
        "gender": "Male",
        "room": "101",
        "condition": "Post-operative recovery",
        "diagnosis": "Appendectomy",
        "care_mode": "live_monitoring",
        "status": "stable",
        "days_admitted": 2,
        "notes": "Patient recovering well from surgery",
    },
    {
        "name": "Sarah Smith",
        "age": 62,
        "gender": "Female",
        "room": "203",
        "condition": "Diabetes management",
        "diagnosis": "Type 2 Diabetes Mellitus",
        "care_mode": "task_based",
        "status": "attention",
        "days_admitted": 5,
        "notes": "Blood sugar monitoring required",
    },
    {
        "name": "Maria Garcia",
        "age": 38,
        "gender": "Female",
        "room": "305",
        "condition": "Pneumonia treatment",
        "diagnosis": "Community-acquired pneumonia",
        "care_mode": "live_monitoring",
        "status": "stable",
        "days_admitted": 3,
        "notes": "Responding well to antibiotics",
    },
]

FIRST_NAMES = ["Emily", "James", "Priya", "Wei", "Fatima", "Carlos", "Elena", "Kwame", "Yuki", "Omar"]
LAST_NAMES = ["Johnson", "Chen", "Patel", "Nguyen", "Santos", "Okonkwo", "Tanaka", "Schmidt", "Park", "Ali"]
CONDITIONS = [
    ("Heart failure exacerbation", "Congestive heart failure"),
    ("COPD flare", "Chronic obstructive pulmonary disease"),
    ("Post-operative recovery", "Hip replacement"),
    ("Sepsis observation", "Urinary tract infection"),
    ("Hypertension control", "Essential hypertension"),
]


def synthetic_patient(index: int) -> dict:
    condition, diagnosis = random.choice(CONDITIONS)
    return {
        "name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "age": random.randint(18, 90),
        "gender": random.choice(["Male", "Female"]),
        "room": str(400 + index),
        "condition": condition,
        "diagnosis": diagnosis,
        "care_mode": random.choice(["live_monitoring", "task_based"]),
        "status": random.choice(["stable", "stable", "attention", "critical"]),
        "days_admitted": random.randint(0, 10),
        "notes": None,
    }


def vitals_series(patient_id: str, now, readings: int = 5) -> list[VitalsReading]:
    return [
        VitalsReading(
            patient_id=patient_id,
            heart_rate=70 + random.randint(0, 19),
            systolic_bp=110 + random.randint(0, 19),
            diastolic_bp=70 + random.randint(0, 14),
            spo2=95 + random.randint(0, 4),
            temperature=round(36.5 + random.random() * 1.5, 1),
            respiratory_rate=14 + random.randint(0, 5),
            timestamp=now - timedelta(hours=readings - 1 - i),
        )
        for i in range(readings)
    ]


async def seed(extra: int = 0) -> int:
    """Returns the number of patients added."""
    try:
        return await _seed(extra)
    finally:
        await engine.dispose()


async def _seed(extra: int) -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        count = await db.scalar(select(func.count(Patient.id)))
        if count and not extra:
            print(f"Database already has {count} patients. Skipping seed.")
            return 0

        rows = [] if count else list(SAMPLE_PATIENTS)
        rows += [synthetic_patient(i) for i in range(extra)]
        now = utc_now()
        for data in rows:
            data = dict(data)
            days = data.pop("days_admitted")
            patient = Patient(
                patient_id=uuid.uuid4().hex[:12],
                active=True,
                admission_time=now - timedelta(days=days),
                created_at=now,
                updated_at=now,
                **data,
            )
            db.add(patient)
            print(f"Created patient: {patient.name}")
            if patient.care_mode == "live_monitoring":
                db.add_all(vitals_series(patient.patient_id, now))

        await db.commit()
        print(f"Seeded {len(rows)} patients.")
        return len(rows)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed VitalGuard patients")
    parser.add_argument("--extra", type=int, default=0, help="Synthetic patients to add")
    args = parser.parse_args()
    asyncio.run(seed(extra=args.extra))
