"""
Import pipeline for legacy homeowners-association billing exports.
"""

__version__ = "0.1.0"
