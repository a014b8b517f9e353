"""
Demo vendors loaded at session start when SEED_DEMO_DATA is enabled.
"""

from typing import List, Type

from .models import CategoryMetrics, SubcontractorMetrics, VendingMetrics, VendorRecord, build_vendor

SUBCONTRACTOR_VENDORS = [
    {
        "id": "V-1001",
        "name": "Apex Structural Steel",
        "category": "Structural Steel",
        "status": "Approved",
        "risk_tier": "Low",
        "overall_score": 92,
        "description": (
            "Apex Structural Steel specializes in high-rise steel framing and complex "
            "architectural metalwork. They have a strong workforce of 150+ union certified "
            "welders. Historically, they have delivered 98% of projects on time. Their "
            "financial health is robust with low debt ratios."
        ),
        "metrics": {"financialHealth": 95, "safetyRecord": 88, "projectPerformance": 98, "compliance": 100},
        "last_audit_date": "2023-11-15",
    },
    {
        "id": "V-1042",
        "name": "Rapid Electrical Systems",
        "category": "Electrical",
        "status": "Pending QA",
        "risk_tier": "Medium",
        "overall_score": 74,
        "description": (
            "Mid-sized electrical contractor focusing on commercial fit-outs. Recent "
            "expansion has strained their cash flow slightly. Safety record shows minor "
            "infractions in the last quarter related to PPE compliance. Work quality is "
            "generally high, but administrative reporting is often delayed."
        ),
        "metrics": {"financialHealth": 65, "safetyRecord": 75, "projectPerformance": 85, "compliance": 70},
        "last_audit_date": "2024-01-10",
    },
    {
        "id": "V-1089",
        "name": "Concrete Foundations Ltd",
        "category": "Concrete",
        "status": "On Hold",
        "risk_tier": "High",
        "overall_score": 58,
        "description": (
            "Large concrete pour specialist. Recently involved in a legal dispute regarding "
            "wage theft, impacting their reputation score significantly. Performance on the "
            "last job was satisfactory, but financial liquidity is currently flagged as a "
            "concern due to litigation reserves."
        ),
        "metrics": {"financialHealth": 40, "safetyRecord": 60, "projectPerformance": 80, "compliance": 50},
        "last_audit_date": "2023-12-05",
    },
    {
        "id": "V-1102",
        "name": "Green HVAC Solutions",
        "category": "Mechanical",
        "status": "Approved",
        "risk_tier": "Low",
        "overall_score": 88,
        "description": (
            "Specializes in LEED certified HVAC installations. Excellent safety culture. "
            "Slightly higher price point but impeccable track record for schedule adherence."
        ),
        "metrics": {"financialHealth": 85, "safetyRecord": 95, "projectPerformance": 90, "compliance": 82},
        "last_audit_date": "2024-02-01",
    },
]

VENDING_VENDORS = [
    {
        "id": "V-2001",
        "name": "FreshSnack Vending Co",
        "category": "Snack & Beverage",
        "status": "Approved",
        "risk_tier": "Low",
        "overall_score": 90,
        "description": "Regional operator of 60 combo machines. Telemetry on every unit; restocks on a twice-weekly route.",
        "metrics": {"uptime": 97, "restockRate": 88, "salesPerformance": 86, "customerSatisfaction": 91},
        "last_audit_date": "2024-03-04",
    },
    {
        "id": "V-2014",
        "name": "CoolBrew Micro Markets",
        "category": "Micro Market",
        "status": "Pending QA",
        "risk_tier": "Medium",
        "overall_score": 68,
        "description": "New entrant running unattended micro markets. Card reader outages reported at two sites last month.",
        "metrics": {"uptime": 72, "restockRate": 70, "salesPerformance": 64, "customerSatisfaction": 66},
        "last_audit_date": "2024-02-19",
    },
    {
        "id": "V-2027",
        "name": "Metro Hot Food Machines",
        "category": "Hot Food",
        "status": "On Hold",
        "risk_tier": "Critical",
        "overall_score": 36,
        "description": "Hot food vending provider under health inspection review after repeated temperature log gaps.",
        "metrics": {"uptime": 55, "restockRate": 40, "salesPerformance": 30, "customerSatisfaction": 20},
        "last_audit_date": "2024-01-22",
    },
]

SEED_DATA = {
    SubcontractorMetrics: SUBCONTRACTOR_VENDORS,
    VendingMetrics: VENDING_VENDORS,
}


def demo_vendors(metrics_model: Type[CategoryMetrics] = SubcontractorMetrics) -> List[VendorRecord]:
    return [build_vendor(data) for data in SEED_DATA[metrics_model]]
