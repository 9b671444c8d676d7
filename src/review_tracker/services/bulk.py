"""Summary type shared by bulk operations."""

from dataclasses import dataclass, field


@dataclass
class BulkResult:
    """Per-item outcome counts of a bulk operation.

    Bulk operations never abort on a single item's failure; each failure
    is counted and described in ``errors`` instead.
    """

    total: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": list(self.errors),
            "total": self.total,
        }
