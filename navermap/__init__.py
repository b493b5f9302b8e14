"""
Naver Maps gateway and lookup tools.

Packages:
- gateway: signed, retried HTTP calls and the failure taxonomy
- usage: billing line item aggregation against free-tier limits
- tools: the five lookup operations
- config: settings and logging
"""

__version__ = "1.0.0"
