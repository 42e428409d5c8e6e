"""
Template validation: field checks plus dependency graph analysis, rolled up
into a ValidationReport.

Problems are reported as data. ``overall_valid`` only turns false on a
critical error; warnings and the completeness score are advisory.
"""

from __future__ import annotations

from typing import List

import structlog

from ..models.base import IssueSeverity
from ..models.template import (
    TemplateRecommendation,
    TemplateStep,
    ValidationIssue,
    ValidationReport,
    ValidationWarning,
)
from . import dependency_graph

logger = structlog.get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 10
MAX_STEP_DURATION_HOURS = 480
TYPICAL_DURATION_SUGGESTION = "Typical step duration is between 1 and 40 hours"

# Completeness weights
_TEMPLATE_FIELD_POINTS = 10  # name, description, rationale, duration
_STEP_COUNT_POINTS = 10  # >=3 steps, >=5 steps
_STEP_DETAIL_POINTS = 10  # description, artifacts, responsible, duration
_MAX_POINTS = 4 * _TEMPLATE_FIELD_POINTS + 2 * _STEP_COUNT_POINTS + 4 * _STEP_DETAIL_POINTS


def _fmt_hours(value: float) -> str:
    return f"{value:g}"


class TemplateValidator:
    """Validate a template recommendation and score its completeness."""

    def validate(self, template: TemplateRecommendation) -> ValidationReport:
        errors: List[ValidationIssue] = []
        warnings: List[ValidationWarning] = []

        errors.extend(self._check_template_fields(template))
        step_errors, step_warnings = self._check_steps(template.steps)
        errors.extend(step_errors)
        warnings.extend(step_warnings)

        template_valid = not any(e.type == "template" for e in errors)
        steps_valid = not any(e.type in {"step", "dependency"} for e in errors)
        overall_valid = not any(e.severity == IssueSeverity.CRITICAL for e in errors)

        report = ValidationReport(
            overall_valid=overall_valid,
            requirements_valid=True,
            template_valid=template_valid,
            steps_valid=steps_valid,
            errors=errors,
            warnings=warnings,
            completeness_score=self.completeness_score(template),
        )
        logger.debug(
            "Template validated",
            template_id=template.id,
            overall_valid=overall_valid,
            error_count=len(errors),
            warning_count=len(warnings),
            completeness=report.completeness_score,
        )
        return report

    # ------------------------------------------------------------------ #
    #  Checks
    # ------------------------------------------------------------------ #
    def _check_template_fields(self, template: TemplateRecommendation) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        if not (template.name or "").strip():
            issues.append(ValidationIssue(
                type="template",
                field="name",
                message="Template name is required",
                severity=IssueSeverity.CRITICAL,
            ))
        if len((template.description or "").strip()) < MIN_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                type="template",
                field="description",
                message=f"Template description must be at least {MIN_DESCRIPTION_LENGTH} characters",
                severity=IssueSeverity.MAJOR,
            ))
        if not template.steps:
            issues.append(ValidationIssue(
                type="template",
                field="steps",
                message="Template must have at least one step",
                severity=IssueSeverity.CRITICAL,
            ))
        return issues

    def _check_steps(self, steps: List[TemplateStep]):
        errors: List[ValidationIssue] = []
        warnings: List[ValidationWarning] = []
        if not steps:
            return errors, warnings

        seen = set()
        for step in steps:
            if step.id in seen:
                errors.append(ValidationIssue(
                    type="step",
                    field="id",
                    message=f"Duplicate step id: {step.id}",
                    severity=IssueSeverity.CRITICAL,
                ))
            seen.add(step.id)

            if not (step.name or "").strip():
                errors.append(ValidationIssue(
                    type="step",
                    field="name",
                    message=f"Step {step.id} name is required",
                    severity=IssueSeverity.MAJOR,
                ))

            if step.duration <= 0 or step.duration > MAX_STEP_DURATION_HOURS:
                warnings.append(ValidationWarning(
                    type="step",
                    message=f"Step {step.name or step.id} has unusual duration: {_fmt_hours(step.duration)} hours",
                    suggestion=TYPICAL_DURATION_SUGGESTION,
                ))

        self_deps = set(dependency_graph.find_self_dependencies(steps))
        for step in steps:
            if step.id in self_deps:
                errors.append(ValidationIssue(
                    type="dependency",
                    field="dependencies",
                    message=f"Step {step.name or step.id} cannot depend on itself",
                    severity=IssueSeverity.CRITICAL,
                ))

        for step_id, missing in dependency_graph.find_missing_dependencies(steps).items():
            for dep in missing:
                errors.append(ValidationIssue(
                    type="dependency",
                    field="dependencies",
                    message=f"Step {step_id} depends on unknown step {dep}",
                    severity=IssueSeverity.CRITICAL,
                ))

        # Self-loops are already reported; look for longer cycles only
        without_self_loops = [
            s.model_copy(update={"dependencies": [d for d in s.dependencies if d != s.id]})
            if s.id in self_deps else s
            for s in steps
        ]
        if dependency_graph.detect_cycles(without_self_loops):
            errors.append(ValidationIssue(
                type="dependency",
                field="dependencies",
                message="Circular dependencies detected in template steps",
                severity=IssueSeverity.CRITICAL,
            ))
        return errors, warnings

    # ------------------------------------------------------------------ #
    #  Completeness
    # ------------------------------------------------------------------ #
    @staticmethod
    def completeness_score(template: TemplateRecommendation) -> int:
        points = 0.0
        if (template.name or "").strip():
            points += _TEMPLATE_FIELD_POINTS
        if len((template.description or "").strip()) >= 20:
            points += _TEMPLATE_FIELD_POINTS
        if template.rationale:
            points += _TEMPLATE_FIELD_POINTS
        if template.estimated_duration > 0:
            points += _TEMPLATE_FIELD_POINTS

        steps = template.steps
        if len(steps) >= 3:
            points += _STEP_COUNT_POINTS
        if len(steps) >= 5:
            points += _STEP_COUNT_POINTS

        if steps:
            detail = 0.0
            for step in steps:
                if len((step.description or "").strip()) >= 10:
                    detail += _STEP_DETAIL_POINTS
                if step.artifacts:
                    detail += _STEP_DETAIL_POINTS
                if (step.responsible or "").strip():
                    detail += _STEP_DETAIL_POINTS
                if step.duration > 0:
                    detail += _STEP_DETAIL_POINTS
            points += detail / len(steps)

        return max(0, min(100, round(points / _MAX_POINTS * 100)))


def validate_template(template: TemplateRecommendation) -> ValidationReport:
    return TemplateValidator().validate(template)
