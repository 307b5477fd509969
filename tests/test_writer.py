import threading

import pytest
from PIL import Image

from conftest import FailingEncoder
from density_raster.density import Density
from density_raster.encode import PillowEncoder, get_output_format
from density_raster.errors import DirectoryCreationError, EncodeOrWriteError
from density_raster.writer import density_directory, write_density

PNG = get_output_format("png")


def _image(width=24, height=32):
    return Image.new("RGBA", (width, height), (200, 10, 10, 255))


def test_writes_into_density_directory(tmp_path):
    out = tmp_path / "out"
    path = write_density(_image(), Density.HIGH, out, "icon", PillowEncoder(), PNG)
    assert path == out / "drawable-hdpi" / "icon.png"
    with Image.open(path) as img:
        assert img.size == (24, 32)
        assert img.mode == "RGBA"
    # no temporary leftovers
    assert [p.name for p in path.parent.iterdir()] == ["icon.png"]


def test_existing_directory_is_not_an_error(tmp_path):
    (tmp_path / "drawable-mdpi").mkdir()
    write_density(_image(), Density.MEDIUM, tmp_path, "a", PillowEncoder(), PNG)
    write_density(_image(), Density.MEDIUM, tmp_path, "b", PillowEncoder(), PNG)
    assert sorted(p.name for p in (tmp_path / "drawable-mdpi").iterdir()) == ["a.png", "b.png"]


def test_encode_failure_rolls_back_created_directory(tmp_path):
    encoder = FailingEncoder({24})
    with pytest.raises(EncodeOrWriteError) as exc:
        write_density(_image(), Density.X_HIGH, tmp_path, "icon", encoder, PNG)
    assert isinstance(exc.value.__cause__, OSError)
    assert not (tmp_path / "drawable-xhdpi").exists()


def test_encode_failure_keeps_preexisting_directory_contents(tmp_path):
    existing = tmp_path / "drawable-xhdpi"
    existing.mkdir()
    (existing / "other.png").write_bytes(b"keep me")
    with pytest.raises(EncodeOrWriteError):
        write_density(_image(), Density.X_HIGH, tmp_path, "icon", FailingEncoder({24}), PNG)
    assert [p.name for p in existing.iterdir()] == ["other.png"]


def test_write_failure_removes_partial_file(tmp_path):
    # the target name is taken by a directory, so the final move fails
    target_dir = tmp_path / "drawable-ldpi" / "icon.png"
    target_dir.mkdir(parents=True)
    with pytest.raises(EncodeOrWriteError):
        write_density(_image(), Density.LOW, tmp_path, "icon", PillowEncoder(), PNG)
    leftovers = [p.name for p in (tmp_path / "drawable-ldpi").iterdir()]
    assert leftovers == ["icon.png"]
    assert target_dir.is_dir()


def test_directory_creation_error(tmp_path):
    blocker = tmp_path / "out"
    blocker.write_bytes(b"")
    with pytest.raises(DirectoryCreationError) as exc:
        write_density(_image(), Density.MEDIUM, blocker, "icon", PillowEncoder(), PNG)
    assert exc.value.directory == blocker / "drawable-mdpi"


def test_density_directory_scope_rolls_back_on_any_error(tmp_path):
    with pytest.raises(RuntimeError):
        with density_directory(tmp_path, Density.HIGH) as scope:
            assert scope.created
            assert scope.path.is_dir()
            raise RuntimeError("interrupted")
    assert not (tmp_path / "drawable-hdpi").exists()


def test_density_directory_scope_keeps_directory_on_success(tmp_path):
    with density_directory(tmp_path, Density.HIGH) as scope:
        scope.write_bytes(scope.path / "x.bin", b"\x00\x01")
    assert (tmp_path / "drawable-hdpi" / "x.bin").read_bytes() == b"\x00\x01"


class _GatedEncoder(PillowEncoder):
    """Signals `entered` once inside the directory scope, then waits for `proceed`."""

    def __init__(self, fail=False):
        super().__init__()
        self.fail = fail
        self.entered = threading.Event()
        self.proceed = threading.Event()

    def encode(self, image, output_format):
        self.entered.set()
        assert self.proceed.wait(10)
        if self.fail:
            raise OSError(28, "No space left on device")
        return super().encode(image, output_format)


def test_failed_writer_does_not_remove_directory_shared_with_a_parallel_writer(tmp_path):
    first, second = _GatedEncoder(fail=True), _GatedEncoder()
    errors = {}

    def run(name, encoder):
        try:
            write_density(_image(), Density.MEDIUM, tmp_path, name, encoder, PNG)
        except EncodeOrWriteError as e:
            errors[name] = e

    a = threading.Thread(target=run, args=("a", first))
    b = threading.Thread(target=run, args=("b", second))
    a.start()
    assert first.entered.wait(10)
    # "a" created drawable-mdpi; "b" enters the existing directory
    b.start()
    assert second.entered.wait(10)
    first.proceed.set()
    a.join(10)
    second.proceed.set()
    b.join(10)

    assert list(errors) == ["a"]
    assert [p.name for p in (tmp_path / "drawable-mdpi").iterdir()] == ["b.png"]


def test_created_directory_survives_until_the_last_scope_fails(tmp_path):
    with pytest.raises(RuntimeError):
        with density_directory(tmp_path, Density.HIGH) as outer:
            with pytest.raises(RuntimeError):
                with density_directory(tmp_path, Density.HIGH) as inner:
                    assert outer.created and not inner.created
                    raise RuntimeError("inner")
            assert outer.path.is_dir()
            raise RuntimeError("outer")
    assert not (tmp_path / "drawable-hdpi").exists()
