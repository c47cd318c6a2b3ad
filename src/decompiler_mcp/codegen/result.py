"""Result type shared by the code generators."""

from dataclasses import dataclass

from ..resolver import MemberSummary


@dataclass(frozen=True)
class GeneratedCodeResult:
    target: MemberSummary
    code: str
    notes: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "target": self.target.to_dict(),
            "code": self.code,
            "notes": list(self.notes),
        }
