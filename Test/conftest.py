import pytest

from helpers import FakeLibrary
from registry import HandleRegistry


@pytest.fixture
def xrk_path(tmp_path):
    path = tmp_path / "WT-20_E05-ARA_Q3_AU-RS3-R5-S-S_017_a_1220.xrk"
    path.write_bytes(b"\x00" * 16)
    return path


@pytest.fixture
def library():
    return FakeLibrary()


@pytest.fixture
def registry(library):
    return HandleRegistry(library)
