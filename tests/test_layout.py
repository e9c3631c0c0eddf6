"""Tests for layout resolution and image mapping."""

import io

import pytest

from ndsldr.core.errors import (
    IllegalMemoryWindowError,
    LayoutError,
    LoadAbortedError,
    SegmentCreationError,
    TruncatedImageError,
)
from ndsldr.core.header import decode
from ndsldr.core.layout import (
    LoadPlan,
    build_address_space,
    is_legal_window,
    map_image,
    resolve,
)
from ndsldr.core.memory_map import MEMORY_REGIONS, MemoryRegion
from ndsldr.core.types import Variant
from tests.rom_builder import ROM_LENGTH, build_header, build_rom


@pytest.fixture
def header(header_bytes):
    return decode(header_bytes)


def test_resolve_arm9_scenario(header):
    plan = resolve(header, Variant.ARM9, 0x6000)
    assert plan == LoadPlan(
        variant=Variant.ARM9,
        processor_tag="ARM",
        start_address=0x02000000,
        end_address=0x02001000,
        rom_offset=0x4000,
        size=0x1000,
        entry_address=0x02004000,
    )
    # entry point lies outside the window and is still accepted
    assert not plan.start_address <= plan.entry_address < plan.end_address


def test_resolve_arm7(header):
    plan = resolve(header, Variant.ARM7, ROM_LENGTH)
    assert plan.processor_tag == "ARM710A"
    assert plan.start_address == 0x037F8000
    assert plan.end_address == 0x037F8800
    assert plan.rom_offset == 0x5000
    assert plan.entry_address == 0x037F8000


def test_resolve_truncated_scenario(header):
    with pytest.raises(TruncatedImageError) as excinfo:
        resolve(header, Variant.ARM9, 0x3000)
    assert isinstance(excinfo.value, LayoutError)
    assert excinfo.value.file_length == 0x3000


@pytest.mark.parametrize("file_length", [0x0, 0x4000, 0x4FFF])
def test_resolve_always_truncated_when_image_exceeds_file(header, file_length):
    with pytest.raises(TruncatedImageError):
        resolve(header, Variant.ARM9, file_length)


def test_resolve_image_ending_at_eof(header):
    assert resolve(header, Variant.ARM9, 0x5000).end_address == 0x02001000


def test_resolve_abort(header):
    with pytest.raises(LoadAbortedError):
        resolve(header, Variant.Abort, ROM_LENGTH)


@pytest.mark.parametrize("ram, size", [
    (0x02000000, 0x1000),
    (0x02000000, 0x10000000),   # ends far past the region
    (0x023FFFFF, 0x7FFFFFFF),
    (0x03800000, 0x100000),
    (0xF0000000, 0x1000),
])
def test_window_starting_in_or_above_region_is_legal(ram, size):
    header = decode(build_header(arm9=(0x200, ram, ram, size)))
    plan = resolve(header, Variant.ARM9, 0x200 + size)
    assert plan.start_address == ram
    assert plan.end_address == ram + size


def test_window_ending_below_region_end_is_legal():
    assert is_legal_window(0x00000000, 0x00000100)


def test_window_around_every_region_is_illegal():
    assert not is_legal_window(0x01000000, 0x05000000)
    header = decode(build_header(arm9=(0x200, 0x01000000, 0x01000000, 0x04000000)))
    with pytest.raises(IllegalMemoryWindowError) as excinfo:
        resolve(header, Variant.ARM9, 0x200 + 0x04000000)
    assert excinfo.value.start == 0x01000000
    assert excinfo.value.end == 0x05000000


def test_empty_region_table_rejects_everything(header):
    assert not is_legal_window(0x02000000, 0x02001000, ())
    with pytest.raises(IllegalMemoryWindowError):
        resolve(header, Variant.ARM9, ROM_LENGTH, regions=())


def test_build_address_space_maps_every_region():
    space = build_address_space()
    assert len(space) == len(MEMORY_REGIONS)
    for seg, region in zip(space.segments, MEMORY_REGIONS):
        assert seg.name == region.name
        assert seg.start == region.start
        assert seg.end == region.end + 1
        assert seg.seg_class == "CODE"


def test_build_address_space_overlapping_regions():
    regions = (
        MemoryRegion("A", 0x1000, 0x1FFF),
        MemoryRegion("B", 0x1800, 0x2FFF),
    )
    with pytest.raises(SegmentCreationError):
        build_address_space(regions)


def test_map_image_copies_selected_range(header, rom_bytes):
    plan = resolve(header, Variant.ARM9, len(rom_bytes))
    space = map_image(plan, rom_bytes)

    assert space.read(0x02000000, 0x1000) == bytes(rom_bytes[0x4000:0x5000])
    assert space[0x02001000] == 0
    assert space.find_segment(0x02000000).bitness == 32
    assert space.find_segment(0x03800000).bitness == 16


def test_map_image_from_file_object(header, rom_bytes):
    plan = resolve(header, Variant.ARM7, len(rom_bytes))
    space = map_image(plan, io.BytesIO(rom_bytes))
    assert space.read(0x037F8000, 0x800) == bytes(rom_bytes[0x5000:0x5800])


def test_map_image_short_source(header):
    plan = resolve(header, Variant.ARM9, ROM_LENGTH)
    with pytest.raises(TruncatedImageError):
        map_image(plan, build_rom(length=0x4800))


def test_map_image_outside_segments_still_creates_all_segments(rom_bytes):
    header = decode(build_header(arm9=(0x4000, 0x08000000, 0x08000000, 0x100)))
    plan = resolve(header, Variant.ARM9, len(rom_bytes))
    space = map_image(plan, rom_bytes)
    assert len(space) == len(MEMORY_REGIONS)
    assert space.find_segment(0x08000000) is None


class _TrickleIO(io.BytesIO):
    """File object whose reads return at most 0x100 bytes, like a pipe."""

    def read(self, size=-1):
        if size is not None and size > 0:
            size = min(size, 0x100)
        return super().read(size)


def test_map_image_assembles_short_reads(header, rom_bytes):
    plan = resolve(header, Variant.ARM9, len(rom_bytes))
    space = map_image(plan, _TrickleIO(bytes(rom_bytes)))
    assert space.read(0x02000000, 0x1000) == bytes(rom_bytes[0x4000:0x5000])


def test_map_image_short_reads_stop_at_eof(header):
    plan = resolve(header, Variant.ARM9, ROM_LENGTH)
    with pytest.raises(TruncatedImageError):
        map_image(plan, _TrickleIO(bytes(build_rom(length=0x4800))))
