"""
fudgeproto - schema compiler for self-describing wire messages.

Compiles message schemas into value classes that encode to and decode from
field-tagged wire messages.
"""

__version__ = "0.1.0"
