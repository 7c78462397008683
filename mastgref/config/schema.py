import re
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from mastgref.constants import (
    DEFAULT_EXCLUDED_DIRS,
    DEFAULT_EXTENSION,
    DEFAULT_PLAIN_PREFIXES,
    DEFAULT_SIGIL,
    DEFAULT_SNAPSHOT_NAME,
    DEFAULT_SUBTYPED_PREFIXES,
    UNRESOLVED_PLACEHOLDER,
)
from mastgref.taxonomy import CODE_PATTERN, Taxonomy

_IDENTIFIER_CHAR = re.compile(r"[A-Za-z0-9_\-\s]")


def _check_code(value: str, what: str) -> str:
    if not CODE_PATTERN.fullmatch(value):
        raise ValueError(f"Invalid {what} {value!r}: expected upper-case letters and digits (e.g. 'MASTG')")
    return value


class TaxonomyConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    subtyped: Dict[str, List[str]] = {prefix: list(codes) for prefix, codes in DEFAULT_SUBTYPED_PREFIXES.items()}
    plain: List[str] = list(DEFAULT_PLAIN_PREFIXES)

    @field_validator("subtyped")
    @classmethod
    def validate_subtyped(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for prefix, codes in v.items():
            _check_code(prefix, "prefix")
            if not codes:
                raise ValueError(f"Prefix {prefix} lists no subtypes; move it to 'plain' instead")
            for code in codes:
                _check_code(code, "subtype")
        return v

    @field_validator("plain")
    @classmethod
    def validate_plain(cls, v: List[str]) -> List[str]:
        for prefix in v:
            _check_code(prefix, "prefix")
        return v

    @model_validator(mode="after")
    def validate_sets(self) -> "TaxonomyConfig":
        if not self.subtyped and not self.plain:
            raise ValueError("At least one prefix is required")
        overlap = set(self.subtyped).intersection(self.plain)
        if overlap:
            raise ValueError(f"Prefixes cannot be both plain and subtyped: {', '.join(sorted(overlap))}")
        return self

    def build(self) -> Taxonomy:
        return Taxonomy(subtyped=self.subtyped, plain=self.plain)


class ScanConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    excluded_dirs: List[str] = list(DEFAULT_EXCLUDED_DIRS)
    extension: str = DEFAULT_EXTENSION

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2 or "/" in v:
            raise ValueError(f"Invalid extension {v!r}: expected something like '.md'")
        return v


class AnnotationConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    sigil: str = DEFAULT_SIGIL
    placeholder: str = UNRESOLVED_PLACEHOLDER

    @field_validator("sigil")
    @classmethod
    def validate_sigil(cls, v: str) -> str:
        if len(v) != 1 or _IDENTIFIER_CHAR.match(v):
            raise ValueError(f"Invalid sigil {v!r}: expected a single punctuation character")
        return v


class WorkspaceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    taxonomy: TaxonomyConfig = TaxonomyConfig()
    scan: ScanConfig = ScanConfig()
    annotations: AnnotationConfig = AnnotationConfig()
    snapshot: str = DEFAULT_SNAPSHOT_NAME

    @field_validator("snapshot")
    @classmethod
    def validate_snapshot(cls, v: str) -> str:
        if not v or Path(v).name != v:
            raise ValueError(f"Invalid snapshot name {v!r}: expected a bare file name")
        return v

    def snapshot_path(self, root: Path) -> Path:
        return root / self.snapshot
