"""
Sample caregivers for a fresh environment.

Seeded through the regular caregiver pipeline (normalize, assemble, batched
upsert keyed by employee id), so running it twice leaves three documents.
"""

from collections.abc import Callable
from datetime import datetime

from homecare.core.models import utc_now
from homecare.core.store import DocumentStore
from homecare.ingest.models import ImportRun
from homecare.ingest.services.pipeline import CAREGIVERS_FROM_EXCEL, ImportPipeline

SAMPLE_CAREGIVERS = (
    {
        "employeeId": "EMP001",
        "status": "active",
        "name": "張大美",
        "gender": "female",
        "nationality": "Taiwan",
        "idNumber": "A223456789",
        "phone": "0912-345-678",
        "age": 45,
        "birthday": "1979-05-20",
        "account": "emp001",
        "role": "居服員",
        "primarySupervisor": "陳督導",
        "secondarySupervisor": "林督導",
        "address": "台北市士林區中正路123號",
        "education": "大學",
        "disabilityStatus": "無",
        "isIndigenous": False,
        "preferredLanguage": "國語",
        "onboardDate": "2023-01-15",
        "emergencyContactName": "張先生",
        "emergencyContactPhone": "0911-111-111",
        "emergencyContactRelationship": "配偶",
        "serviceArea": "士林區",
        "notes": "資深績優員工",
    },
    {
        "employeeId": "EMP002",
        "status": "active",
        "name": "李小明",
        "gender": "male",
        "nationality": "Taiwan",
        "idNumber": "A123456789",
        "phone": "0922-333-444",
        "age": 32,
        "birthday": "1992-08-10",
        "account": "emp002",
        "role": "居服員",
        "primarySupervisor": "王督導",
        "address": "台北市北投區大業路456號",
        "education": "高中",
        "disabilityStatus": "無",
        "isIndigenous": False,
        "preferredLanguage": "台語",
        "onboardDate": "2023-03-20",
        "emergencyContactName": "李太太",
        "emergencyContactPhone": "0922-222-222",
        "emergencyContactRelationship": "母親",
        "serviceArea": "北投區",
        "notes": "",
    },
    {
        "employeeId": "EMP003",
        "status": "inactive",
        "name": "王美麗",
        "gender": "female",
        "nationality": "Indonesia",
        "idNumber": "XYZ123456",
        "phone": "0933-555-666",
        "age": 28,
        "birthday": "1996-12-05",
        "account": "emp003",
        "role": "居服員",
        "primarySupervisor": "陳督導",
        "address": "台北市中山區北安路789號",
        "education": "高中",
        "disabilityStatus": "無",
        "isIndigenous": False,
        "preferredLanguage": "英語",
        "onboardDate": "2022-11-01",
        "resignationDate": "2023-12-31",
        "emergencyContactName": "陳先生",
        "emergencyContactPhone": "0933-333-333",
        "emergencyContactRelationship": "朋友",
        "serviceArea": "中山區",
        "notes": "已離職返鄉",
    },
)


def seed_caregivers(
    store: DocumentStore, clock: Callable[[], datetime] = utc_now
) -> ImportRun:
    """Upsert the sample caregivers and return the run."""
    pipeline = ImportPipeline(store, CAREGIVERS_FROM_EXCEL, clock=clock)
    return pipeline.process_rows(SAMPLE_CAREGIVERS, source_name="sample caregivers")
