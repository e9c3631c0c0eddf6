"""
ndsldr -- Nintendo DS ROM recogniser and ARM7/ARM9 image layout resolver.
"""

__version__ = "1.13.0"
