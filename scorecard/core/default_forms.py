"""Built-in evaluation forms.

Used when a company has not configured a form of its own for a given
(target role, customer type) pair, and seeded into the database by the
``c3d4e5f6a7b8`` migration.  Item ids are stable so evaluations written
against a default form stay interpretable after a tenant customises it.
"""

from typing import Any, Dict, List, Optional

from scorecard.schemas.common import CustomerType, Role

# Marker used as ``company_id`` for built-in forms in the database
DEFAULT_FORM_COMPANY_ID = "__default__"


def _category(
    category_id: str, name: str, weight: float, items: List[str]
) -> Dict[str, Any]:
    return {
        "id": category_id,
        "name": name,
        "weight": weight,
        "items": [
            {"id": f"{category_id}-{index}", "name": item_name, "order": index}
            for index, item_name in enumerate(items, start=1)
        ],
    }


DEFAULT_FORMS: List[Dict[str, Any]] = [
    {
        "id": "default-salesperson-low-share",
        "name": "Sales Lead → Salesperson Evaluation",
        "target_role": Role.SALESPERSON.value,
        "customer_type": CustomerType.LOW_SHARE.value,
        "categories": [
            _category(
                "sp-discovery",
                "Discovery",
                0.25,
                [
                    "Asks open-ended questions",
                    "Uncovers customer pain points",
                    "Identifies decision makers",
                ],
            ),
            _category(
                "sp-solution",
                "Solution Positioning",
                0.25,
                [
                    "Tailors solution to customer context",
                    "Articulates clear value proposition",
                    "Demonstrates product knowledge",
                ],
            ),
            _category(
                "sp-closing",
                "Closing & Next Steps",
                0.25,
                [
                    "Makes clear asks",
                    "Identifies next steps",
                    "Sets mutual commitments",
                ],
            ),
            _category(
                "sp-professionalism",
                "Professionalism",
                0.25,
                [
                    "Arrives prepared",
                    "Manages time effectively",
                    "Maintains professional demeanor",
                ],
            ),
        ],
    },
    {
        "id": "default-salesperson-high-share",
        "name": "Sales Lead → Salesperson Evaluation (High Share)",
        "target_role": Role.SALESPERSON.value,
        "customer_type": CustomerType.HIGH_SHARE.value,
        "categories": [
            _category(
                "hs-preparation",
                "Preparation Before the Meeting",
                0.25,
                [
                    "Identified core products the client uses but does not buy from us",
                    "Selected 1–2 focus products for the meeting",
                    "Knows where the client currently orders from and why",
                ],
            ),
            _category(
                "hs-problem",
                "Problem Definition",
                0.25,
                [
                    "Asked about opportunities to improve collaboration",
                    "Proposed specific products prepared in advance",
                    "Connected long-term goals with the proposed products",
                ],
            ),
            _category(
                "hs-objections",
                "Handling Objections",
                0.25,
                [
                    "Listened fully to objection without interrupting",
                    "Validated client's perspective",
                    "Put objection in market context",
                ],
            ),
            _category(
                "hs-proposal",
                "Commercial Proposal",
                0.25,
                [
                    "Presented a sustainable partnership solution",
                    "Emphasized the benefits of adding more products",
                    "Proposed test of key products",
                    "Agreed on a next step with a longer-term perspective",
                ],
            ),
        ],
    },
    {
        "id": "default-sales-lead-coaching",
        "name": "Regional Manager → Sales Lead Coaching Evaluation",
        "target_role": Role.SALES_LEAD.value,
        "customer_type": None,
        "categories": [
            _category(
                "obs",
                "Observation & Intervention During Client Meeting",
                0.25,
                [
                    "Let salesperson lead the conversation",
                    "Provided support when needed",
                    "Stepped in with added value at right time",
                    "Actively listened to client and salesperson",
                ],
            ),
            _category(
                "env",
                "Creating Coaching Environment",
                0.25,
                [
                    "Ensured calm and safe atmosphere",
                    "Asked salesperson for self-assessment",
                    "Listened attentively without interrupting",
                ],
            ),
            _category(
                "fb",
                "Quality of Analysis & Feedback",
                0.25,
                [
                    "Started with positive practices",
                    "Gave concrete examples from client meeting",
                    "Identified areas for improvement with examples",
                ],
            ),
            _category(
                "act",
                "Translating Into Action",
                0.25,
                [
                    "Set clear tasks for a specific period",
                    "Reached agreement on evaluation and next steps",
                    "Encouraged a personal goal or commitment",
                ],
            ),
        ],
    },
]


def find_default_form(
    target_role: Role, customer_type: Optional[CustomerType]
) -> Optional[Dict[str, Any]]:
    """Return the built-in form definition for the pair, or ``None``."""
    wanted_type = customer_type.value if customer_type else None
    for form in DEFAULT_FORMS:
        if form["target_role"] == target_role.value and form["customer_type"] == wanted_type:
            return form
    return None
