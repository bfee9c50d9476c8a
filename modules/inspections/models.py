"""Datamodel definitions for checklist inspections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterator, Optional


class StructuralIntegrityError(ValueError):
    """Raised when responses and the checklist definition disagree.

    This is a precondition violation: the caller must rebuild the session.
    """


class ItemStatus(str, Enum):
    UNCHECKED = "unchecked"
    PASS = "pass"
    FAIL = "fail"
    NA = "na"


class FindingSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    INCOMPLETE = "incomplete"


class QualityBand(str, Enum):
    PASS = "pass"
    CONDITIONAL = "conditional"
    FAIL = "fail"


@dataclass(frozen=True, slots=True)
class ChecklistItemDefinition:
    id: str
    text: str
    category: str
    critical: bool = False
    description: str = ""


@dataclass(frozen=True, slots=True)
class ChecklistCategory:
    id: str
    name: str
    items: tuple[ChecklistItemDefinition, ...]


@dataclass(frozen=True)
class ChecklistDefinition:
    """Ordered categories of checklist items for one inspection type.

    Item ids are unique across the whole definition; a duplicate raises
    :class:`StructuralIntegrityError` at construction time.
    """

    inspection_type: str
    title: str
    categories: tuple[ChecklistCategory, ...]
    subject_type: str = "equipment"

    def __post_init__(self) -> None:
        seen: dict[str, str] = {}
        for category in self.categories:
            for item in category.items:
                if item.id in seen:
                    raise StructuralIntegrityError(
                        f"Duplicate checklist item id {item.id!r} in "
                        f"categories {seen[item.id]!r} and {category.id!r}"
                    )
                seen[item.id] = category.id
        # frozen dataclass: bypass __setattr__ for the lookup caches
        object.__setattr__(self, "_category_by_item", dict(seen))
        object.__setattr__(
            self,
            "_items",
            {item.id: item for category in self.categories for item in category.items},
        )

    def total_items(self) -> int:
        return len(self._items)

    def item_ids(self) -> list[str]:
        return list(self._items)

    def has_item(self, item_id: str) -> bool:
        return item_id in self._items

    def item(self, item_id: str) -> ChecklistItemDefinition:
        try:
            return self._items[item_id]
        except KeyError:
            raise StructuralIntegrityError(
                f"Item {item_id!r} is not defined in checklist {self.inspection_type!r}"
            ) from None

    def category_for(self, item_id: str) -> ChecklistCategory:
        category_id = self._category_by_item.get(item_id)
        if category_id is None:
            raise StructuralIntegrityError(
                f"Item {item_id!r} is not defined in checklist {self.inspection_type!r}"
            )
        for category in self.categories:
            if category.id == category_id:
                return category
        raise StructuralIntegrityError(f"Category {category_id!r} missing")  # pragma: no cover

    def iter_items(self) -> Iterator[tuple[ChecklistCategory, ChecklistItemDefinition]]:
        for category in self.categories:
            for item in category.items:
                yield category, item

    def critical_item_ids(self) -> frozenset[str]:
        return frozenset(item.id for item in self._items.values() if item.critical)


@dataclass(slots=True)
class ItemResponse:
    item_id: str
    status: ItemStatus = ItemStatus.UNCHECKED
    notes: str = ""


@dataclass(frozen=True, slots=True)
class Finding:
    id: str
    item_id: str
    category_id: str
    category_name: str
    item_text: str
    severity: FindingSeverity
    description: str
    corrective_action: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "item_text": self.item_text,
            "severity": self.severity.value,
            "description": self.description,
            "corrective_action": self.corrective_action,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Finding":
        return cls(
            id=data["id"],
            item_id=data["item_id"],
            category_id=data["category_id"],
            category_name=data.get("category_name", ""),
            item_text=data.get("item_text", ""),
            severity=FindingSeverity(data["severity"]),
            description=data.get("description", ""),
            corrective_action=data.get("corrective_action", ""),
            created_at=data.get("created_at", ""),
        )


@dataclass(frozen=True, slots=True)
class ItemSnapshot:
    id: str
    text: str
    critical: bool
    status: ItemStatus
    notes: str = ""


@dataclass(frozen=True, slots=True)
class CategorySnapshot:
    category_id: str
    category_name: str
    items: tuple[ItemSnapshot, ...]


@dataclass(frozen=True, slots=True)
class ChecklistSnapshot:
    """Category -> item -> status/notes, frozen at submission time."""

    inspection_type: str
    title: str
    categories: tuple[CategorySnapshot, ...]

    def statuses(self) -> dict[str, ItemStatus]:
        return {item.id: item.status for category in self.categories for item in category.items}

    def to_definition(self, subject_type: str = "equipment") -> ChecklistDefinition:
        return ChecklistDefinition(
            inspection_type=self.inspection_type,
            title=self.title,
            subject_type=subject_type,
            categories=tuple(
                ChecklistCategory(
                    id=category.category_id,
                    name=category.category_name,
                    items=tuple(
                        ChecklistItemDefinition(
                            id=item.id,
                            text=item.text,
                            category=category.category_id,
                            critical=item.critical,
                        )
                        for item in category.items
                    ),
                )
                for category in self.categories
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "inspection_type": self.inspection_type,
            "title": self.title,
            "categories": [
                {
                    "category_id": category.category_id,
                    "category_name": category.category_name,
                    "items": [
                        {
                            "id": item.id,
                            "text": item.text,
                            "critical": item.critical,
                            "status": item.status.value,
                            "notes": item.notes,
                        }
                        for item in category.items
                    ],
                }
                for category in self.categories
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChecklistSnapshot":
        return cls(
            inspection_type=data["inspection_type"],
            title=data.get("title", ""),
            categories=tuple(
                CategorySnapshot(
                    category_id=category["category_id"],
                    category_name=category.get("category_name", ""),
                    items=tuple(
                        ItemSnapshot(
                            id=item["id"],
                            text=item.get("text", ""),
                            critical=bool(item.get("critical", False)),
                            status=ItemStatus(item["status"]),
                            notes=item.get("notes") or "",
                        )
                        for item in category.get("items", [])
                    ),
                )
                for category in data.get("categories", [])
            ),
        )


@dataclass(frozen=True, slots=True)
class InspectionMetadata:
    subject_id: str = ""
    location: str = ""
    operator: str = ""
    inspection_date: date = field(default_factory=date.today)
    subject_type: str = "equipment"


@dataclass(frozen=True, slots=True)
class InspectionRecord:
    id: str
    inspection_type: str
    subject_id: str
    subject_type: str
    location: str
    operator: str
    inspection_date: date
    status: Verdict
    result_label: QualityBand
    score: int
    fail_count: int
    critical_failed_count: int
    deficiency_count: int
    out_of_service: bool
    follow_up_date: Optional[date]
    checklist: ChecklistSnapshot
    findings: tuple[Finding, ...]
    notes: str
    submitted_at: str


def record_to_dict(record: InspectionRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "inspection_type": record.inspection_type,
        "subject_id": record.subject_id,
        "subject_type": record.subject_type,
        "location": record.location,
        "operator": record.operator,
        "inspection_date": record.inspection_date.isoformat(),
        "status": record.status.value,
        "result_label": record.result_label.value,
        "score": record.score,
        "fail_count": record.fail_count,
        "critical_failed_count": record.critical_failed_count,
        "deficiency_count": record.deficiency_count,
        "out_of_service": record.out_of_service,
        "follow_up_date": record.follow_up_date.isoformat() if record.follow_up_date else None,
        "checklist": record.checklist.to_dict(),
        "findings": [finding.to_dict() for finding in record.findings],
        "notes": record.notes,
        "submitted_at": record.submitted_at,
    }


def record_from_dict(data: dict[str, Any]) -> InspectionRecord:
    follow_up = data.get("follow_up_date")
    return InspectionRecord(
        id=data["id"],
        inspection_type=data["inspection_type"],
        subject_id=data["subject_id"],
        subject_type=data.get("subject_type", "equipment"),
        location=data.get("location", ""),
        operator=data.get("operator", ""),
        inspection_date=date.fromisoformat(data["inspection_date"]),
        status=Verdict(data["status"]),
        result_label=QualityBand(data["result_label"]),
        score=int(data["score"]),
        fail_count=int(data.get("fail_count", 0)),
        critical_failed_count=int(data.get("critical_failed_count", 0)),
        deficiency_count=int(data.get("deficiency_count", 0)),
        out_of_service=bool(data.get("out_of_service", False)),
        follow_up_date=date.fromisoformat(follow_up) if follow_up else None,
        checklist=ChecklistSnapshot.from_dict(data["checklist"]),
        findings=tuple(Finding.from_dict(item) for item in data.get("findings", [])),
        notes=data.get("notes") or "",
        submitted_at=data.get("submitted_at", ""),
    )
