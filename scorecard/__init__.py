"""
Vendor Scorecard — risk scoring and QA approval backend for a vendor
compliance dashboard.
"""

__version__ = "1.0.0"
