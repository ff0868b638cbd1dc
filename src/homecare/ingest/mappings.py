"""
Field alias tables for case and caregiver imports.

Each canonical field lists the source-column labels it accepts, in priority
order. The canonical (English) name is always the last alias, so sheets with
English headers and documents re-exported from the store both resolve.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from homecare.core.models import (
    CAREGIVERS_COLLECTION,
    CASES_COLLECTION,
    CaregiverStatus,
    CaseStatus,
)


class FieldKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    STATUS = "status"


# Sentinel: field has no default and is omitted when absent
OMIT = object()


@dataclass(frozen=True)
class FieldSpec:
    name: str
    aliases: tuple[str, ...]
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    default: Any = OMIT
    # Date fields only: substitute the run date when absent
    default_today: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not OMIT or self.default_today


@dataclass(frozen=True)
class StatusRules:
    """Free-text status -> canonical status. Exact match first, then substring."""

    exact: dict[str, str]
    contains: tuple[tuple[str, str], ...]
    default: str

    def resolve(self, raw: Any) -> str:
        if raw is None:
            return self.default
        text = str(raw).strip()
        if not text:
            return self.default
        lowered = text.lower()
        if text in self.exact:
            return self.exact[text]
        if lowered in self.exact:
            return self.exact[lowered]
        for token, status in self.contains:
            if token in lowered:
                return status
        return self.default


@dataclass(frozen=True)
class EntityType:
    name: str
    collection: str
    fields: tuple[FieldSpec, ...]
    status_rules: StatusRules
    natural_key: str | None = None
    required_fields: tuple[str, ...] = field(default=())

    def get(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)


_KIND_DEFAULTS = {
    FieldKind.TEXT: "",
    FieldKind.INTEGER: 0,
    FieldKind.NUMBER: 0,
    FieldKind.BOOLEAN: False,
    FieldKind.DATE: "",
}


def _field(
    name: str,
    *labels: str,
    kind: FieldKind = FieldKind.TEXT,
    required: bool = False,
    default: Any = None,
    default_today: bool = False,
    omit_when_absent: bool = False,
) -> FieldSpec:
    if omit_when_absent:
        resolved_default = OMIT
    elif default is not None:
        resolved_default = default
    else:
        resolved_default = _KIND_DEFAULTS.get(kind, "")
    return FieldSpec(
        name=name,
        aliases=(*labels, name),
        kind=kind,
        required=required,
        default=resolved_default,
        default_today=default_today,
    )


# -----------------------------------------------------------------------------
# Status alias tables
# -----------------------------------------------------------------------------

CASE_STATUS_RULES = StatusRules(
    exact={
        "服務中": CaseStatus.ACTIVE,
        "活躍": CaseStatus.ACTIVE,
        "active": CaseStatus.ACTIVE,
        "暫停": CaseStatus.PENDING,  # suspended cases are shown as pending
        "待評估": CaseStatus.PENDING,
        "pending": CaseStatus.PENDING,
        "已結案": CaseStatus.ARCHIVED,
        "已存檔": CaseStatus.ARCHIVED,
        "archived": CaseStatus.ARCHIVED,
    },
    contains=(
        ("服務中", CaseStatus.ACTIVE),
        ("活躍", CaseStatus.ACTIVE),
        ("暫停", CaseStatus.PENDING),
        ("待評估", CaseStatus.PENDING),
        ("結案", CaseStatus.ARCHIVED),
        ("存檔", CaseStatus.ARCHIVED),
        ("archived", CaseStatus.ARCHIVED),
    ),
    default=CaseStatus.ACTIVE,
)

CAREGIVER_STATUS_RULES = StatusRules(
    exact={
        "在職": CaregiverStatus.ACTIVE,
        "離職": CaregiverStatus.INACTIVE,
        "留職停薪": CaregiverStatus.SUSPENDED,
        "active": CaregiverStatus.ACTIVE,
        "inactive": CaregiverStatus.INACTIVE,
        "suspended": CaregiverStatus.SUSPENDED,
    },
    contains=(
        ("停薪", CaregiverStatus.SUSPENDED),
        ("離職", CaregiverStatus.INACTIVE),
        ("在職", CaregiverStatus.ACTIVE),
    ),
    default=CaregiverStatus.ACTIVE,
)


# -----------------------------------------------------------------------------
# Case fields
# -----------------------------------------------------------------------------

CASE_FIELDS: tuple[FieldSpec, ...] = (
    # Required
    _field("name", "姓名", required=True),
    _field("age", "年齡", kind=FieldKind.INTEGER, required=True),
    _field("phone", "電話", "聯絡電話", required=True),
    _field("address", "地址", "個案居住地址", required=True),
    _field("status", "狀態", "目前狀態", kind=FieldKind.STATUS, required=True, default=CaseStatus.ACTIVE),
    _field("careLevel", "照顧等級", "CMS等級", required=True),
    _field("caregiver", "居服員", "主責居服員", required=True),
    _field("lastVisit", "上次訪視", kind=FieldKind.DATE, required=True, default_today=True),
    # Basic info
    _field("caseNumber", "案號"),
    _field("gender", "性別"),
    _field("birthDate", "出生年月日", kind=FieldKind.DATE),
    _field("personalId", "身分證字號"),
    _field("source", "個案來源"),
    _field("language", "常用語言"),
    _field("education", "個案教育程度"),
    _field("height", "身高", kind=FieldKind.NUMBER),
    _field("weight", "體重", kind=FieldKind.NUMBER),
    # Contact & living
    _field("city", "個案居住縣市"),
    _field("district", "鄉鎮區"),
    _field("village", "里別"),
    _field("livingStatus", "居住狀況"),
    _field("billingAddress", "帳單地址"),
    # Identity & welfare
    _field("isIndigenous", "原住民身份", kind=FieldKind.BOOLEAN),
    _field("indigenousTribe", "原住民族別"),
    _field("welfareStatus", "福利身份別"),
    _field("subsidyRatio", "補助比例(%)", "補助比例"),
    _field("pricingCategory", "計價類別"),
    _field("disabilityLevel", "障礙等級"),
    _field("disabilityCategoryNew", "身障類別(新制)"),
    _field("disabilityCategoryOld", "身障類別(舊制)"),
    _field("disabilityItem", "身障項目別"),
    _field("dementiaStatus", "失智症手冊/CDR", "是否具備身心障礙失智症手冊/證明或CDR1分以上"),
    _field("foreignCareOrSubsidy", "請外勞照護或領有特照津貼", kind=FieldKind.BOOLEAN),
    # Health
    _field("diseases", "罹患疾病"),
    _field("diseaseHistory", "疾病史"),
    _field("behaviorEmotion", "行為與情緒"),
    # Primary / secondary caregivers
    _field("primaryCaregiver", "主要照顧者"),
    _field("primaryCaregiverRelation", "主要照顧者關係"),
    _field("primaryCaregiverAge", "主要照顧者年齡", kind=FieldKind.INTEGER),
    _field("secondaryCaregiver", "次要照顧者"),
    _field("secondaryCaregiverRelation", "次要照顧者關係"),
    # Proxy
    _field("proxy", "代理人"),
    _field("proxyPhone", "代理人電話"),
    _field("proxyMobile", "代理人手機號碼"),
    # Service team
    _field("supervisor", "主責督導"),
    _field("viceSupervisor", "副督導"),
    # A unit (care management agency). 聯絡電話 is also a phone alias; both fields read it.
    _field("AUnitName", "A單位名稱"),
    _field("ACaseManager", "A個管姓名"),
    _field("AUnitPhone", "A單位聯絡電話", "聯絡電話"),
    _field("AUnitEmail", "電子郵件", "A單位電子郵件"),
    # Service administration
    _field("serviceTypeApplied", "申請服務種類"),
    _field("serviceStartDate", "服務開始時間", kind=FieldKind.DATE),
    _field("suspensionDate", "暫停日期", kind=FieldKind.DATE),
    _field("suspensionNotes", "暫停備註"),
    _field("closingDate", "結案日期", kind=FieldKind.DATE),
    _field("closingReason", "結案原因"),
    _field("closingNotes", "結案備註"),
    _field("refusalCount", "拒絕次數", kind=FieldKind.INTEGER),
    # Billing & usage
    _field("category", "類別"),
    _field("serviceItems", "服務項目"),
    _field("serviceCount", "服務次數", kind=FieldKind.INTEGER),
    _field("usageQuota", "使用額度", kind=FieldKind.NUMBER),
    _field("subsidyAmount", "補助金額", kind=FieldKind.NUMBER),
    _field("coPayment", "民眾負擔", kind=FieldKind.NUMBER),
    _field("selfPayment", "自費", kind=FieldKind.NUMBER),
    _field("totalCost", "民眾總花費", kind=FieldKind.NUMBER),
    _field("notes", "備註"),
)


# -----------------------------------------------------------------------------
# Caregiver fields
# -----------------------------------------------------------------------------

CAREGIVER_FIELDS: tuple[FieldSpec, ...] = (
    _field("employeeId", "員工編號", required=True),
    _field("status", "現在狀態", kind=FieldKind.STATUS, required=True, default=CaregiverStatus.ACTIVE),
    _field("name", "姓名", required=True),
    _field("gender", "性別", required=True),
    _field("phone", "手機號碼", required=True),
    _field("role", "角色", required=True),
    _field("nationality", "國籍"),
    _field("idNumber", "身分證字號"),
    _field("age", "年齡", kind=FieldKind.INTEGER, omit_when_absent=True),
    _field("birthday", "生日", kind=FieldKind.DATE),
    _field("account", "帳號"),
    _field("primarySupervisor", "主責督導"),
    _field("secondarySupervisor", "副督導"),
    _field("address", "居住地"),
    _field("education", "教育程度"),
    _field("disabilityStatus", "身心障礙者"),
    _field("isIndigenous", "原住民", kind=FieldKind.BOOLEAN),
    _field("indigenousTribe", "原住民族別"),
    _field("preferredLanguage", "常用語言"),
    _field("onboardDate", "到職日", kind=FieldKind.DATE),
    _field("resignationDate", "離職日", kind=FieldKind.DATE),
    _field("emergencyContactName", "緊急聯絡人姓名", "緊急連絡人姓名"),
    _field("emergencyContactPhone", "緊急連絡人電話", "緊急聯絡人電話"),
    _field("emergencyContactRelationship", "緊急連絡人關係", "緊急聯絡人關係"),
    _field("serviceArea", "服務區域"),
    _field("notes", "備註"),
)


CASE = EntityType(
    name="case",
    collection=CASES_COLLECTION,
    fields=CASE_FIELDS,
    status_rules=CASE_STATUS_RULES,
    required_fields=tuple(spec.name for spec in CASE_FIELDS if spec.required),
)

CAREGIVER = EntityType(
    name="caregiver",
    collection=CAREGIVERS_COLLECTION,
    fields=CAREGIVER_FIELDS,
    status_rules=CAREGIVER_STATUS_RULES,
    natural_key="employeeId",
    required_fields=tuple(spec.name for spec in CAREGIVER_FIELDS if spec.required),
)
