"""
Shared fixtures for the ndsldr tests.
"""

import pytest

from tests.rom_builder import build_header, build_rom


@pytest.fixture
def header_bytes():
    return build_header()


@pytest.fixture
def rom_bytes():
    return build_rom()


@pytest.fixture
def rom_file(tmp_path, rom_bytes):
    path = tmp_path / "game.nds"
    path.write_bytes(rom_bytes)
    return path
