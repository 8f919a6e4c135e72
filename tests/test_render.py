import io

import pytest
from PIL import Image

from mediashelf.services.render import (
    RENDERED_MIME_TYPE,
    ImageEdit,
    RenderMap,
    RenderMerger,
    _apply,
    encode_jpeg,
)

from tests.fakes import FakeBlobStore, FakeEdit, make_item


def test_items_without_overlay_map_to_themselves():
    a, b = make_item("file:///a.jpg", 1), make_item("file:///b.jpg", 2)
    out = RenderMerger(FakeBlobStore()).render([a, b], {})
    assert list(out) == [a, b]
    assert out[a] is a and out[b] is b


def test_edited_item_becomes_new_jpeg_blob():
    a = make_item("file:///a.jpg", taken_at=42, width=10, height=10, size=1,
                  bucket_id="trips", caption="sunset")
    blobs = FakeBlobStore()
    out = RenderMerger(blobs).render([a], {a: FakeEdit(size=(64, 48))})
    result = out[a]
    assert result.location == "blob:rendered-1.jpg"
    assert result.mime_type == RENDERED_MIME_TYPE == "image/jpeg"
    assert (result.width, result.height) == (64, 48)
    assert result.taken_at == 42
    assert result.caption == "sunset"
    assert result.bucket_id == "trips"
    data, mime = blobs.saved[0]
    assert result.size == len(data)
    assert mime == "image/jpeg"
    with Image.open(io.BytesIO(data)) as im:
        assert im.format == "JPEG"
        assert im.size == (64, 48)


def test_persist_failure_falls_back_to_original():
    a = make_item("file:///a.jpg", 1)
    out = RenderMerger(FakeBlobStore(fail=True)).render([a], {a: FakeEdit()})
    assert out[a] is a


def test_raster_is_closed_on_success_and_failure():
    closed = []

    class ClosingEdit(FakeEdit):
        def render(self):
            im = super().render()
            orig_close = im.close

            def close():
                closed.append(True)
                orig_close()

            im.close = close
            return im

    a = make_item("file:///a.jpg", 1)
    RenderMerger(FakeBlobStore()).render([a], {a: ClosingEdit()})
    RenderMerger(FakeBlobStore(fail=True)).render([a], {a: ClosingEdit()})
    assert closed == [True, True]


def test_overlays_match_by_location_not_full_record():
    current = make_item("file:///a.jpg", taken_at=1, width=100, height=100, size=10)
    stale = make_item("file:///a.jpg", taken_at=1)
    out = RenderMerger(FakeBlobStore()).render([current], {stale: FakeEdit()})
    assert out[current].location.startswith("blob:")
    assert stale in out
    assert out[stale] == out[current]


def test_overlay_for_unknown_item_is_ignored():
    a = make_item("file:///a.jpg", 1)
    other = make_item("file:///other.jpg", 1)
    blobs = FakeBlobStore()
    out = RenderMerger(blobs).render([a], {other: FakeEdit()})
    assert len(out) == 1
    assert out[a] is a
    assert blobs.saved == []


def test_render_map_keeps_input_order():
    items = [make_item(f"file:///{n}.jpg") for n in "cab"]
    out = RenderMerger(FakeBlobStore()).render(items, {})
    assert [i.location for i in out] == ["file:///c.jpg", "file:///a.jpg", "file:///b.jpg"]
    assert [o.location for o, _ in out.pairs()] == [i.location for i in items]


def test_render_map_rejects_non_items():
    m = RenderMap()
    m.put(make_item("file:///a.jpg"), make_item("file:///a.jpg"))
    assert "file:///a.jpg" not in m


def test_encode_jpeg_converts_non_rgb():
    with Image.new("RGBA", (4, 4), (1, 2, 3, 128)) as im:
        data = encode_jpeg(im, quality=70)
    with Image.open(io.BytesIO(data)) as decoded:
        assert decoded.mode == "RGB"


def test_image_edit_applies_operations_in_order(jpeg_file):
    src = jpeg_file("wide.jpg", size=(40, 30))
    edit = ImageEdit(src, (("rotate", 90), ("crop", (0, 0, 20, 10)), ("mirror",), ("flip",)))
    with edit.render() as im:
        assert im.size == (20, 10)
        assert im.mode == "RGB"


def test_image_edit_honours_exif_orientation(jpeg_file):
    src = jpeg_file("sideways.jpg", size=(40, 30), exif_orientation=6)
    with ImageEdit(src).render() as im:
        assert im.size == (30, 40)


def test_image_edit_unknown_operation(jpeg_file):
    with pytest.raises(ValueError):
        ImageEdit(jpeg_file(), (("sepia",),)).render()


def test_image_edit_on_real_file_through_merger(jpeg_file):
    src = jpeg_file("a.jpg", size=(40, 30))
    a = make_item(src.as_uri(), taken_at=5)
    out = RenderMerger(FakeBlobStore()).render([a], {a: ImageEdit(src, (("rotate", 90),))})
    assert (out[a].width, out[a].height) == (30, 40)


def test_failed_operation_still_closes_input_raster():
    closed = []
    im = Image.new("RGB", (8, 8))
    orig_close = im.close

    def close():
        closed.append(True)
        orig_close()

    im.close = close
    with pytest.raises(ValueError):
        _apply(im, ("sepia",))
    assert closed == [True]
