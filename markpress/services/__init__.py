"""Markpress services package.

Content, profile and tag services. Each service is constructed with the
key-value store it reads and writes, so the web layer and tests decide
which store backs it.
"""
