"""
Blind Pricing Package

Dimensional pricing for made-to-measure window blinds.
Resolves a price using Width/Height → Band → Price Cell lookup with
customization surcharges layered on top.
"""

__version__ = "1.0.0"
