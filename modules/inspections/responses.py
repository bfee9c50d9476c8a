"""Per-item answers for one inspection session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .models import ChecklistDefinition, ItemResponse, ItemStatus, StructuralIntegrityError


def round_percent(numerator: int, denominator: int) -> int:
    """Round ``numerator / denominator * 100`` half-up; 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


@dataclass(frozen=True, slots=True)
class CompletionStats:
    total: int
    unchecked: int
    passed: int
    failed: int
    na: int

    @property
    def checked_count(self) -> int:
        return self.total - self.unchecked

    @property
    def progress_percent(self) -> int:
        return round_percent(self.checked_count, self.total)

    @property
    def scored_count(self) -> int:
        """Checked items that count toward the score (N/A excluded)."""
        return self.total - self.unchecked - self.na


class ResponseStore:
    """Exactly one :class:`ItemResponse` per item of a checklist definition."""

    def __init__(self, definition: ChecklistDefinition):
        self.definition = definition
        self._responses: dict[str, ItemResponse] = {
            item_id: ItemResponse(item_id=item_id) for item_id in definition.item_ids()
        }

    @classmethod
    def from_responses(
        cls,
        definition: ChecklistDefinition,
        responses: Iterable[ItemResponse],
    ) -> "ResponseStore":
        store = cls(definition)
        seen: set[str] = set()
        for response in responses:
            if not definition.has_item(response.item_id):
                raise StructuralIntegrityError(
                    f"Response references unknown item {response.item_id!r}"
                )
            if response.item_id in seen:
                raise StructuralIntegrityError(
                    f"Duplicate response for item {response.item_id!r}"
                )
            seen.add(response.item_id)
            store._responses[response.item_id] = ItemResponse(
                item_id=response.item_id,
                status=ItemStatus(response.status),
                notes=response.notes or "",
            )
        missing = set(definition.item_ids()) - seen
        if missing:
            raise StructuralIntegrityError(
                f"Missing responses for items: {', '.join(sorted(missing))}"
            )
        return store

    def _get(self, item_id: str) -> ItemResponse:
        try:
            return self._responses[item_id]
        except KeyError:
            raise StructuralIntegrityError(
                f"Item {item_id!r} is not defined in checklist "
                f"{self.definition.inspection_type!r}"
            ) from None

    def get(self, item_id: str) -> ItemResponse:
        response = self._get(item_id)
        return ItemResponse(response.item_id, response.status, response.notes)

    def status(self, item_id: str) -> ItemStatus:
        return self._get(item_id).status

    def set_status(self, item_id: str, status: ItemStatus | str) -> ItemStatus:
        """Overwrite the status of one item and return the previous status."""
        response = self._get(item_id)
        previous = response.status
        response.status = ItemStatus(status)
        return previous

    def set_notes(self, item_id: str, notes: str) -> None:
        self._get(item_id).notes = notes or ""

    def __iter__(self) -> Iterator[ItemResponse]:
        for item_id in self.definition.item_ids():
            yield self.get(item_id)

    def __len__(self) -> int:
        return len(self._responses)

    def completion_stats(self) -> CompletionStats:
        counts = {status: 0 for status in ItemStatus}
        for response in self._responses.values():
            counts[response.status] += 1
        return CompletionStats(
            total=len(self._responses),
            unchecked=counts[ItemStatus.UNCHECKED],
            passed=counts[ItemStatus.PASS],
            failed=counts[ItemStatus.FAIL],
            na=counts[ItemStatus.NA],
        )

    def failed_item_ids(self) -> list[str]:
        return [
            item_id
            for item_id in self.definition.item_ids()
            if self._responses[item_id].status is ItemStatus.FAIL
        ]
