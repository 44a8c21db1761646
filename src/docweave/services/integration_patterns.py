"""Authored catalog of cross-source integration patterns"""

from typing import Literal

from docweave.core import stable_id
from docweave.models import IntegrationPattern, IntegrationStep

# (source, action, endpoint hint, description), in workflow order
_STEP_TEMPLATES: list[tuple[str, str, str | None, str]] = [
    ("oneroster", "Authenticate and fetch student roster", "/users", "Get list of students and their basic information"),
    ("case", "Look up competency frameworks", "/CFDocuments", "Retrieve the standards that assessments and paths align to"),
    ("qti", "Create or retrieve assessment", "/assessmentTests", "Set up assessment for students"),
    ("powerpath", "Assign learning path", None, "Place students on a learning path based on their results"),
    ("caliper", "Track learning events", "/events", "Send learning activity events for analytics"),
]

_ACCESS_PREREQUISITES = {
    "oneroster": "OneRoster API access",
    "qti": "QTI API access",
    "caliper": "Caliper sensor configuration",
    "powerpath": "PowerPath API access",
    "case": "CASE framework access",
}

_PATTERNS: list[tuple[str, str, list[str], Literal["beginner", "intermediate", "advanced"]]] = [
    (
        "Student Data Sync",
        "Synchronize student information between OneRoster and other APIs",
        ["oneroster", "caliper", "qti"],
        "beginner",
    ),
    (
        "Assessment Workflow",
        "Complete assessment workflow from creation to analytics",
        ["qti", "caliper", "powerpath"],
        "intermediate",
    ),
    (
        "Standards Alignment",
        "Align assessments and learning paths with academic standards",
        ["case", "qti", "powerpath"],
        "advanced",
    ),
    (
        "Learning Analytics Pipeline",
        "Track and analyze learning activities across platforms",
        ["caliper", "oneroster", "powerpath"],
        "intermediate",
    ),
]


def build_steps(sources: list[str]) -> list[IntegrationStep]:
    """Ordered generic steps for the participating sources."""
    steps: list[IntegrationStep] = []
    for source, action, endpoint_hint, description in _STEP_TEMPLATES:
        if source in sources:
            steps.append(
                IntegrationStep(
                    order=len(steps) + 1,
                    source=source,
                    action=action,
                    endpoint_hint=endpoint_hint,
                    description=description,
                )
            )
    return steps


def build_prerequisites(sources: list[str]) -> list[str]:
    prerequisites = ["OAuth2 client credentials"]
    prerequisites.extend(_ACCESS_PREREQUISITES[s] for s in sources if s in _ACCESS_PREREQUISITES)
    return prerequisites


def default_integration_patterns() -> list[IntegrationPattern]:
    """Fresh copies of the authored patterns, without code example links."""
    return [
        IntegrationPattern(
            id=stable_id("pattern", name.lower().replace(" ", "-")),
            name=name,
            description=description,
            sources=sources,
            steps=build_steps(sources),
            prerequisites=build_prerequisites(sources),
            difficulty=difficulty,
        )
        for name, description, sources, difficulty in _PATTERNS
    ]
