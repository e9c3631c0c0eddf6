"""
Core enumerations for the NDS loader.

Variant is the three-way answer a caller gives when asked which embedded
executable to load: the ARM9 image, the ARM7 image, or neither.
"""

from enum import IntEnum


class Variant(IntEnum):
    Abort = -1
    ARM7 = 0
    ARM9 = 1

    @staticmethod
    def is_loadable(v):
        return v in (Variant.ARM9, Variant.ARM7)


# Processor module names per variant.
PROCESSOR_TAGS: dict[Variant, str] = {
    Variant.ARM9: "ARM",
    Variant.ARM7: "ARM710A",
}

# Selected as soon as a file is recognised, before any variant is chosen.
DEFAULT_PROCESSOR: str = "ARM"
