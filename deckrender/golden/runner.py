"""Golden test runner: byte-exact comparison per pipeline stage.

For each case, the `xml` stage compiles the DSL fixture and compares the
result with the recorded intermediate; every other stage renders the
recorded intermediate (or the freshly compiled one when none is recorded)
to its format and compares bytes. Stages are judged independently, so a
backend regression is reported even when the compiler stage also failed.
"""

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from deckrender.golden.catalog import INTERMEDIATE_STAGE, GoldenCase, GoldenCatalog, load_catalog
from deckrender.pipeline.orchestrator import Pipeline, write_output

logger = logging.getLogger("deckrender.golden")

TEXT_STAGES = {"xml", "svg"}


class StageStatus(str, Enum):
    """Outcome of one stage of one case."""

    PASSED = "passed"
    FAILED = "failed"      # bytes differ
    SKIPPED = "skipped"    # fixture missing
    ERROR = "error"        # the stage raised


@dataclass
class StageResult:
    """Result of one stage."""
    stage: str
    status: StageStatus
    message: str = ""
    diff: Optional[str] = None          # concise indicator, never a full diff
    remediation: Optional[str] = None


@dataclass
class CaseResult:
    """Result of one case."""
    name: str
    category: str
    stages: list[StageResult] = field(default_factory=list)
    skipped: bool = False
    reason: str = ""

    @property
    def passed(self) -> bool:
        return not self.skipped and all(
            s.status in (StageStatus.PASSED, StageStatus.SKIPPED) for s in self.stages
        )

    def stage(self, name: str) -> Optional[StageResult]:
        for result in self.stages:
            if result.stage == name:
                return result
        return None


@dataclass
class GoldenSummary:
    """Accumulated results of a run."""
    cases: list[CaseResult] = field(default_factory=list)

    def counts(self) -> dict[str, dict[str, int]]:
        """Stage -> status -> count."""
        table: dict[str, dict[str, int]] = {}
        for case in self.cases:
            for result in case.stages:
                row = table.setdefault(result.stage, {s.value: 0 for s in StageStatus})
                row[result.status.value] += 1
        return table

    @property
    def failures(self) -> int:
        return sum(
            1
            for case in self.cases
            for result in case.stages
            if result.status in (StageStatus.FAILED, StageStatus.ERROR)
        )

    @property
    def skipped_cases(self) -> int:
        return sum(1 for case in self.cases if case.skipped)

    @property
    def ok(self) -> bool:
        return self.failures == 0


def describe_difference(expected: bytes, actual: bytes, text: bool = False) -> Optional[str]:
    """A one-line indicator of where two byte strings first differ."""
    if expected == actual:
        return None
    limit = min(len(expected), len(actual))
    offset = next((i for i in range(limit) if expected[i] != actual[i]), limit)
    where = f"first difference at byte {offset}"
    if text:
        line = expected[:offset].count(b"\n") + 1
        where += f" (line {line})"
    return f"{where}; expected {len(expected)} bytes, got {len(actual)}"


class GoldenRunner:
    """
    Runs a fixture catalog through the pipeline.

    Args:
        catalog: Catalog or path to its JSON file
        pipeline: Pipeline to test
        base_dir: Directory catalog paths resolve against (default: the
            catalog's directory joined with its `source_base`)
        output_dir: Where generated artifacts are written (None = not written)
        update: Re-record fixtures instead of comparing
    """

    def __init__(
        self,
        catalog: Union[GoldenCatalog, str, Path],
        pipeline: Pipeline,
        base_dir: Optional[Union[str, Path]] = None,
        output_dir: Optional[Union[str, Path]] = None,
        update: bool = False,
    ):
        if isinstance(catalog, GoldenCatalog):
            self.catalog = catalog
            root = Path(base_dir) if base_dir else Path.cwd()
        else:
            self.catalog = load_catalog(catalog)
            root = Path(base_dir) if base_dir else Path(catalog).parent
        self.base_dir = root / self.catalog.source_base if self.catalog.source_base else root
        self.pipeline = pipeline
        self.output_dir = Path(output_dir) if output_dir else None
        self.update = update

    def run(self, category: Optional[str] = None) -> GoldenSummary:
        """Run every case (or one category); never stops on a failing case."""
        summary = GoldenSummary()
        for case in self.catalog.cases(category):
            try:
                result = self.run_case(case)
            except Exception as exc:
                logger.exception(f"Case {case.name} crashed")
                result = CaseResult(case.name, case.category, [
                    StageResult("case", StageStatus.ERROR, f"{type(exc).__name__}: {exc}"),
                ])
            summary.cases.append(result)
        logger.info(
            f"Golden run: {len(summary.cases)} cases, {summary.failures} failures, "
            f"{summary.skipped_cases} skipped"
        )
        return summary

    def run_case(self, case: GoldenCase) -> CaseResult:
        """Run one case stage by stage."""
        result = CaseResult(case.name, case.category)
        dsl_path = self.base_dir / case.input.dsh
        if not dsl_path.exists():
            result.skipped = True
            result.reason = f"input fixture missing: {dsl_path}"
            logger.warning(f"Skipping {case.name}: {result.reason}")
            return result

        dsl_text = dsl_path.read_text(encoding="utf-8")
        generated_xml: Optional[bytes] = None
        try:
            generated_xml = self.pipeline.compile(dsl_text).encode("utf-8")
            compile_error = None
        except Exception as exc:
            compile_error = exc

        if INTERMEDIATE_STAGE in case.outputs:
            if compile_error is not None:
                result.stages.append(StageResult(
                    INTERMEDIATE_STAGE, StageStatus.ERROR, str(compile_error),
                    remediation="fix the DSL fixture or the compiler; output stages use the recorded XML",
                ))
            else:
                result.stages.append(self._judge(case, INTERMEDIATE_STAGE, generated_xml))

        recorded_xml = self._expected_bytes(case, INTERMEDIATE_STAGE)
        source_xml = recorded_xml if recorded_xml is not None and not self.update else generated_xml

        for stage in case.output_stages:
            if source_xml is None:
                result.stages.append(StageResult(
                    stage, StageStatus.SKIPPED, "no intermediate XML recorded or compiled",
                ))
                continue
            try:
                data = self.pipeline.render_xml(source_xml, stage, asset_dir=dsl_path.parent)
            except Exception as exc:
                result.stages.append(StageResult(
                    stage, StageStatus.ERROR, str(exc),
                    remediation=f"run the {stage} backend on the recorded XML to reproduce",
                ))
                continue
            result.stages.append(self._judge(case, stage, data))

        return result

    def _expected_path(self, case: GoldenCase, stage: str) -> Path:
        return self.base_dir / case.outputs[stage]

    def _expected_bytes(self, case: GoldenCase, stage: str) -> Optional[bytes]:
        if stage not in case.outputs:
            return None
        path = self._expected_path(case, stage)
        return path.read_bytes() if path.exists() else None

    def _judge(self, case: GoldenCase, stage: str, actual: bytes) -> StageResult:
        expected_path = self._expected_path(case, stage)
        generated_path = self._write_generated(case, stage, actual)

        if self.update:
            write_output(expected_path, actual)
            return StageResult(stage, StageStatus.PASSED, f"recorded {expected_path}")

        if not expected_path.exists():
            return StageResult(
                stage, StageStatus.SKIPPED, f"expected fixture missing: {expected_path}",
                remediation="record it with --update",
            )

        diff = describe_difference(expected_path.read_bytes(), actual, text=stage in TEXT_STAGES)
        if diff is None:
            return StageResult(stage, StageStatus.PASSED)

        if stage == INTERMEDIATE_STAGE:
            hint = "check that the compiler version matches the one that recorded the fixture"
        else:
            hint = f"compare {generated_path or 'the output'} with {expected_path}; re-record with --update if the change is intended"
        return StageResult(stage, StageStatus.FAILED, "output differs", diff=diff, remediation=hint)

    def _write_generated(self, case: GoldenCase, stage: str, data: bytes) -> Optional[Path]:
        if self.output_dir is None:
            return None
        path = self.output_dir / case.outputs[stage]
        write_output(path, data)
        return path

    def cleanup(self) -> None:
        """Remove generated artifacts."""
        if self.output_dir is not None and self.output_dir.exists():
            shutil.rmtree(self.output_dir)
            logger.info(f"Removed {self.output_dir}")


# =============================================================================
# REPORTING
# =============================================================================

def format_report(summary: GoldenSummary) -> str:
    """Human-readable run report."""
    lines = []
    for case in summary.cases:
        if case.skipped:
            lines.append(f"SKIP {case.name} ({case.category}): {case.reason}")
            continue
        marks = ", ".join(f"{s.stage} {s.status.value}" for s in case.stages)
        lines.append(f"{'PASS' if case.passed else 'FAIL'} {case.name} ({case.category}): {marks}")
        for s in case.stages:
            if s.status in (StageStatus.FAILED, StageStatus.ERROR):
                lines.append(f"    {s.stage}: {s.diff or s.message}")
                if s.remediation:
                    lines.append(f"    hint: {s.remediation}")

    lines.append("")
    lines.append(
        f"{len(summary.cases)} cases, {summary.failures} stage failures, "
        f"{summary.skipped_cases} cases skipped"
    )
    for stage, row in summary.counts().items():
        lines.append("  " + f"{stage}: " + ", ".join(f"{n} {status}" for status, n in row.items()))
    return "\n".join(lines)


def main():
    """CLI entry point for the golden test runner."""
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Run golden tests for the deck pipeline")
    parser.add_argument("catalog", help="Path to the catalog JSON")
    parser.add_argument("--category", help="Only run this category")
    parser.add_argument("--output-dir", help="Write generated artifacts here")
    parser.add_argument("--update", action="store_true", help="Re-record fixtures")
    parser.add_argument("--clean", action="store_true", help="Remove generated artifacts afterwards")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    runner = GoldenRunner(args.catalog, Pipeline(), output_dir=args.output_dir, update=args.update)
    summary = runner.run(args.category)
    print(format_report(summary))
    if args.clean:
        runner.cleanup()
    sys.exit(0 if summary.ok else 1)


if __name__ == "__main__":
    main()
