"""Built-in workflow templates.

The documents use the editor's spelling (``type`` and ``sourceHandle``) and are
canonicalized on load like any other imported workflow.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from flowreplay.graph.model import WorkflowGraph


@dataclass(frozen=True, slots=True)
class WorkflowTemplate:
    id: str
    name: str
    description: str
    workflow: dict[str, Any]
    sample_contexts: tuple[dict[str, Any], ...] = field(default=())

    def document(self) -> dict[str, Any]:
        return copy.deepcopy(self.workflow)

    def graph(self, *, strict: bool = False) -> WorkflowGraph:
        return WorkflowGraph.from_dict(self.document(), strict=strict)


def _level(node_id: str, label: str, level_name: str, steps: list[str], level_type: str = "Individuals") -> dict[str, Any]:
    return {
        "id": node_id,
        "type": "level",
        "data": {"label": label, "levelName": level_name, "levelType": level_type, "steps": steps},
    }


def _condition(node_id: str, label: str, branches: list[tuple[str, str]]) -> dict[str, Any]:
    return {
        "id": node_id,
        "type": "condition",
        "data": {
            "label": label,
            "branches": [{"name": name, "condition": condition} for name, condition in branches],
        },
    }


def _action(node_id: str, label: str, actions: list[tuple[str, str, str]]) -> dict[str, Any]:
    return {
        "id": node_id,
        "type": "action",
        "data": {
            "label": label,
            "actions": [{"type": kind, "title": title, "value": value} for kind, title, value in actions],
        },
    }


def _edge(source: str, target: str, handle: str | None = None) -> dict[str, Any]:
    edge: dict[str, Any] = {"source": source, "target": target}
    if handle is not None:
        edge["sourceHandle"] = handle
    return edge


SIMPLE_LINEAR = WorkflowTemplate(
    id="simple-linear",
    name="Simple Linear Workflow",
    description="Basic workflow with sequential steps.",
    workflow={
        "nodes": [
            _level("level-start", "Collect Information", "Data Collection", ["APPLICANT_DATA"]),
            _level("level-verify", "Verify Identity", "Identity Verification", ["IDENTITY", "SELFIE"]),
            _action(
                "action-approve",
                "Approve & Notify",
                [
                    ("approve", "Approve application", ""),
                    ("sendEmail", "Send confirmation email", "user@example.com"),
                ],
            ),
        ],
        "edges": [
            _edge("level-start", "level-verify"),
            _edge("level-verify", "action-approve"),
        ],
    },
    sample_contexts=({},),
)

AGE_CHECK = WorkflowTemplate(
    id="age-check",
    name="Age Check",
    description="If/else flow that approves adults and rejects minors.",
    workflow={
        "nodes": [
            _level("collect", "Collect Data", "Basic Information", ["APPLICANT_DATA"]),
            _condition("age-check", "Age Verification", [("Is Adult", "age >= 18")]),
            _action("approve", "Approve", [("approve", "Application Approved", "")]),
            _action("reject", "Reject", [("reject", "Rejected - Too Young", "")]),
        ],
        "edges": [
            _edge("collect", "age-check"),
            _edge("age-check", "approve", "branch-0"),
            _edge("age-check", "reject", "else"),
        ],
    },
    sample_contexts=({"age": 25}, {"age": 15}),
)

COUNTRY_KYC = WorkflowTemplate(
    id="country-kyc",
    name="Country-based KYC",
    description="Routes applicants to a country-specific KYC level, with an international fallback.",
    workflow={
        "nodes": [
            _level("start", "Start KYC", "Initial", []),
            _condition(
                "country-check",
                "Country Verification",
                [
                    ("Singapore", "country equals Singapore"),
                    ("USA", "country equals USA"),
                    ("UK", "country equals UK"),
                ],
            ),
            _level("sg-kyc", "Singapore KYC", "SG Process", ["IDENTITY", "SELFIE"]),
            _level("usa-kyc", "USA KYC", "US Process", ["IDENTITY", "SSN"]),
            _level("uk-kyc", "UK KYC", "UK Process", ["IDENTITY", "PROOF_OF_ADDRESS"]),
            _level("other-kyc", "International KYC", "Standard", ["IDENTITY"]),
            _action("final", "Complete", [("complete", "Done", "")]),
        ],
        "edges": [
            _edge("start", "country-check"),
            _edge("country-check", "sg-kyc", "branch-0"),
            _edge("country-check", "usa-kyc", "branch-1"),
            _edge("country-check", "uk-kyc", "branch-2"),
            _edge("country-check", "other-kyc", "else"),
            _edge("sg-kyc", "final"),
            _edge("usa-kyc", "final"),
            _edge("uk-kyc", "final"),
            _edge("other-kyc", "final"),
        ],
    },
    sample_contexts=({"country": "Singapore"}, {"country": "usa"}, {"country": "UK"}, {"country": "France"}),
)

RISK_ASSESSMENT = WorkflowTemplate(
    id="risk-assessment",
    name="Risk Assessment",
    description="Routes applicants through enhanced, standard or basic KYC by risk score.",
    workflow={
        "nodes": [
            _level("collect", "Collect Data", "Basic Information", ["APPLICANT_DATA"]),
            _condition(
                "risk-check",
                "Risk Assessment",
                [("High Risk", "riskScore >= 70"), ("Medium Risk", "riskScore >= 30")],
            ),
            _level("enhanced-kyc", "Enhanced KYC", "Enhanced Due Diligence", ["IDENTITY", "SELFIE", "PROOF_OF_ADDRESS"]),
            _level("standard-kyc", "Standard KYC", "Standard Verification", ["IDENTITY", "SELFIE"]),
            _level("basic-kyc", "Basic KYC", "Basic Verification", ["IDENTITY"]),
            _action(
                "manual-review",
                "High Risk Actions",
                [
                    ("createCase", "Create manual review case", "Compliance Team"),
                    ("sendEmail", "Alert compliance team", "compliance@company.com"),
                    ("log", "Log risk event", "High risk user detected"),
                ],
            ),
            _action(
                "auto-approve",
                "Auto-Approve Actions",
                [
                    ("approve", "Auto-approve user", ""),
                    ("sendWebhook", "Notify partner system", "https://api.partner.com/webhook"),
                    ("sendEmail", "Welcome email", "user@example.com"),
                    ("notify", "Push notification", "Account approved!"),
                ],
            ),
        ],
        "edges": [
            _edge("collect", "risk-check"),
            _edge("risk-check", "enhanced-kyc", "branch-0"),
            _edge("risk-check", "standard-kyc", "branch-1"),
            _edge("risk-check", "basic-kyc", "else"),
            _edge("enhanced-kyc", "manual-review"),
            _edge("standard-kyc", "auto-approve"),
            _edge("basic-kyc", "auto-approve"),
        ],
    },
    sample_contexts=({"riskScore": 85}, {"riskScore": 50}, {"riskScore": 10}),
)

MULTI_BRANCH = WorkflowTemplate(
    id="multi-branch",
    name="Multi-Branch Workflow",
    description="Two decision points: document type, then upload quality.",
    workflow={
        "nodes": [
            _level(
                "level-collect",
                "Collect Documents",
                "Document Collection",
                ["COMPANY_DATA", "DOCUMENTS"],
                level_type="Companies",
            ),
            _condition(
                "condition-doctype",
                "Document Type Check",
                [("Passport", "docType equals PASSPORT"), ("ID Card", "docType equals ID_CARD")],
            ),
            _condition("condition-quality", "Quality Check", [("Good Quality", "qualityScore >= 80")]),
            _action("action-approve", "Approve", [("approve", "Approve verification", "")]),
            _action(
                "action-retry",
                "Retry Upload",
                [("sendEmail", "Request re-upload", "Please re-upload clearer documents")],
            ),
            _action(
                "action-reject",
                "Reject",
                [("sendEmail", "Send rejection notice", "Your application was rejected")],
            ),
        ],
        "edges": [
            _edge("level-collect", "condition-doctype"),
            _edge("condition-doctype", "condition-quality", "branch-0"),
            _edge("condition-doctype", "condition-quality", "branch-1"),
            _edge("condition-quality", "action-approve", "branch-0"),
            _edge("condition-quality", "action-retry", "else"),
            _edge("condition-doctype", "action-reject", "else"),
        ],
    },
    sample_contexts=(
        {"docType": "PASSPORT", "qualityScore": 92},
        {"docType": "ID_CARD", "qualityScore": 40},
        {"docType": "DRIVING_LICENSE"},
    ),
)

TEMPLATES: dict[str, WorkflowTemplate] = {
    template.id: template
    for template in (SIMPLE_LINEAR, AGE_CHECK, COUNTRY_KYC, RISK_ASSESSMENT, MULTI_BRANCH)
}


def list_templates() -> list[WorkflowTemplate]:
    return list(TEMPLATES.values())


def get_template(template_id: str) -> WorkflowTemplate:
    try:
        return TEMPLATES[template_id]
    except KeyError:
        known = ", ".join(sorted(TEMPLATES))
        raise KeyError(f"Unknown template '{template_id}'. Available: {known}.") from None
