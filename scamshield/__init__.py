"""
scamshield — scam / social-engineering message detector.
Keyword scan + suspicion classifier, fused into one verdict.
"""

__version__ = '1.0.0'
