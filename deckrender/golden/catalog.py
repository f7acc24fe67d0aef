"""Pydantic models for the golden test fixture catalog."""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Stage that compiles DSL to the intermediate XML; every other stage names
# an output format rendered from that XML
INTERMEDIATE_STAGE = "xml"


class GoldenInput(BaseModel):
    """Input fixture of a case."""

    dsh: str = Field(..., description="DSL file, relative to the source base")


class GoldenCase(BaseModel):
    """One named test case: a DSL fixture and its expected artifacts."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str = "general"
    input: GoldenInput
    outputs: dict[str, str] = Field(
        default_factory=dict,
        description="Stage name -> expected artifact, relative to the source base",
    )

    @property
    def output_stages(self) -> list[str]:
        """Stages rendered from the intermediate XML, in catalog order."""
        return [stage for stage in self.outputs if stage != INTERMEDIATE_STAGE]


class GoldenCatalog(BaseModel):
    """Versioned list of golden test cases."""

    version: str = "1.0"
    description: str = ""
    generated: Optional[str] = None
    source_base: str = ""
    total_tests: int = 0
    test_cases: list[GoldenCase] = Field(default_factory=list)

    @property
    def categories(self) -> list[str]:
        return sorted({case.category for case in self.test_cases})

    def cases(self, category: Optional[str] = None) -> list[GoldenCase]:
        if category is None:
            return list(self.test_cases)
        return [case for case in self.test_cases if case.category == category]


def load_catalog(path: Union[str, Path]) -> GoldenCatalog:
    """Read a catalog JSON file."""
    with open(path, encoding="utf-8") as f:
        return GoldenCatalog.model_validate(json.load(f))


def save_catalog(catalog: GoldenCatalog, path: Union[str, Path]) -> None:
    """Write a catalog JSON file."""
    data = catalog.model_copy(update={"total_tests": len(catalog.test_cases)})
    Path(path).write_text(data.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8")
