from mediashelf.repositories.media_index import IndexQueryError, ItemRow
from mediashelf.schemas.media import ALL_MEDIA_BUCKET_ID, MediaKind
from mediashelf.services.items import BucketItemResolver, oriented_dimensions
from mediashelf.utils.locators import path_to_locator

from tests.fakes import FakeIndex, FakePermission


def image(path, taken_at, orientation=0, width=100, height=50, size=1000):
    return ItemRow(path=path, mime_type="image/jpeg", taken_at=taken_at, width=width,
                   height=height, size=size, orientation=orientation)


def video(path, taken_at, width=1920, height=1080, size=5000):
    return ItemRow(path=path, mime_type="video/mp4", taken_at=taken_at, width=width,
                   height=height, size=size)


def resolver(images=(), videos=(), allowed=True):
    index = FakeIndex(items={MediaKind.IMAGE: list(images), MediaKind.VIDEO: list(videos)})
    return BucketItemResolver(index, FakePermission(allowed)), index


def test_kinds_are_interleaved_newest_first():
    res, _ = resolver(
        images=[image("/m/i5.jpg", 5), image("/m/i1.jpg", 1)],
        videos=[video("/m/v4.mp4", 4), video("/m/v2.mp4", 2)],
    )
    items = res.list_items("bucket")
    assert [i.taken_at for i in items] == [5, 4, 2, 1]
    assert items[1].mime_type == "video/mp4"


def test_ties_keep_images_before_videos():
    res, _ = resolver(images=[image("/m/i.jpg", 3)], videos=[video("/m/v.mp4", 3)])
    assert [i.location for i in res.list_items("b")] == [path_to_locator("/m/i.jpg"),
                                                        path_to_locator("/m/v.mp4")]


def test_sideways_orientation_swaps_dimensions():
    res, _ = resolver(images=[
        image("/m/rot.jpg", 2, orientation=90, width=1080, height=1920),
        image("/m/up.jpg", 1, orientation=0, width=1080, height=1920),
    ])
    rotated, upright = res.list_items("b")
    assert (rotated.width, rotated.height) == (1920, 1080)
    assert (upright.width, upright.height) == (1080, 1920)


def test_oriented_dimensions_cardinal_and_odd_angles():
    assert oriented_dimensions(180, 4, 3) == (4, 3)
    assert oriented_dimensions(270, 4, 3) == (3, 4)
    assert oriented_dimensions(45, 4, 3) == (3, 4)


def test_video_dimensions_are_read_as_stored():
    res, _ = resolver(videos=[video("/m/v.mp4", 1, width=1920, height=1080)])
    (item,) = res.list_items("b")
    assert (item.width, item.height) == (1920, 1080)


def test_items_carry_requested_bucket_and_no_caption():
    res, index = resolver(images=[image("/m/a.jpg", 1)])
    (item,) = res.list_items("holiday")
    assert item.bucket_id == "holiday"
    assert item.caption is None
    assert item.size == 1000
    assert index.calls == [("items", MediaKind.IMAGE, "holiday"), ("items", MediaKind.VIDEO, "holiday")]


def test_all_media_bucket_queries_without_filter():
    res, index = resolver(images=[image("/m/a.jpg", 1)])
    (item,) = res.list_items(ALL_MEDIA_BUCKET_ID)
    assert index.calls == [("items", MediaKind.IMAGE, None), ("items", MediaKind.VIDEO, None)]
    assert item.bucket_id == ALL_MEDIA_BUCKET_ID


def test_no_permission_returns_empty_without_queries():
    res, index = resolver(images=[image("/m/a.jpg", 1)], allowed=False)
    assert res.list_items("b") == []
    assert res.most_recent_item() is None
    assert index.calls == []


def test_most_recent_item_is_newest_image():
    res, index = resolver(images=[image("/m/new.jpg", 9), image("/m/old.jpg", 2)],
                          videos=[video("/m/v.mp4", 99)])
    assert res.most_recent_item().location == path_to_locator("/m/new.jpg")
    assert index.calls == [("items", MediaKind.IMAGE, None)]


def test_most_recent_item_none_when_empty():
    res, _ = resolver()
    assert res.most_recent_item() is None


def test_index_failure_degrades_to_empty():
    class BrokenIndex(FakeIndex):
        def query_items(self, kind, bucket_id):
            raise IndexQueryError("no such table: media_index")

    res = BucketItemResolver(BrokenIndex(), FakePermission(True))
    assert res.list_items("b") == []
    assert res.most_recent_item() is None
