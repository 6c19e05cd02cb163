from dataclasses import dataclass, field

ROW_STATUSES = ("add", "update", "error")


@dataclass
class FieldMap:
    """One data row keyed by lower-cased header, checked against an import kind."""
    values: dict[str, str]
    unknown: set[str] = field(default_factory=set)
    missing: set[str] = field(default_factory=set)

    def get(self, name: str) -> str:
        return self.values.get(name, "").strip()


@dataclass
class PreviewRow:
    row_num: int            # spreadsheet row number; the header is row 1
    status: str             # 'add' | 'update' | 'error'
    data: FieldMap
    changes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def record_id(self) -> str:
        return self.data.get("id")


@dataclass
class ImportPreview:
    kind: str
    headers: list[str]
    rows: list[PreviewRow]
    source_name: str = ""
    unknown_headers: list[str] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.rows if r.status == status)

    @property
    def added(self) -> int:
        return self._count("add")

    @property
    def updated(self) -> int:
        return self._count("update")

    @property
    def errors(self) -> int:
        return self._count("error")

    @property
    def can_apply(self) -> bool:
        return bool(self.rows) and self.errors == 0


@dataclass
class ImportResult:
    applied: bool
    success: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    imported_ids: list[str] = field(default_factory=list)
