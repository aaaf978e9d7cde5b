"""Log stream models — patch operations, entries, transcripts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EntryType(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = ""


class EntryContent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    entry_type: EntryType = EntryType()
    content: str = ""


class PatchValue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    content: EntryContent = EntryContent()


class PatchOp(BaseModel):
    """A single JSON-Patch style operation from a stream frame.

    Only ``add``/``replace`` on ``/entries/<N>`` are meaningful to the
    reconstructor; everything else is carried but ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    op: str = ""
    path: str = ""
    value: PatchValue = PatchValue()


class LogEntry(BaseModel):
    """One transcript entry, keyed by its position in the remote entry list."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    kind: str
    text: str


class Transcript(BaseModel):
    """Final ordered sequence of entries for one execution process."""

    model_config = ConfigDict(frozen=True)

    entries: list[LogEntry] = []

    @property
    def indices(self) -> list[int]:
        return [e.index for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
