"""Military pay eligibility rules, benefits math and tax estimation."""

__version__ = "0.1.0"
