from mediashelf.services.populate import MetadataCompleter, first_known_size

from tests.fakes import FakeAuthority, FakePermission, FakeProbe, make_item


def test_fully_populated_input_is_returned_untouched():
    items = [make_item("file:///a.jpg", 3, 10, 20, 300), make_item("file:///b.jpg", 2, 1, 1, 1)]
    authority, probe = FakeAuthority(), FakeProbe()
    out = MetadataCompleter(authority, probe).populate(items)
    assert out is items
    assert authority.calls == []
    assert probe.calls == []


def test_missing_fields_are_filled_in():
    probe = FakeProbe(metadata_sizes={"file:///a.jpg": 4096},
                      dimensions={"file:///a.jpg": (640, 480)})
    (item,) = MetadataCompleter(FakeAuthority(), probe).populate([make_item("file:///a.jpg", taken_at=7)])
    assert (item.width, item.height, item.size) == (640, 480, 4096)
    assert item.taken_at == 7
    assert item.location == "file:///a.jpg"


def test_one_failure_leaves_only_that_item_unchanged():
    a, b, c = (make_item(f"file:///{n}.jpg", taken_at=i) for i, n in enumerate("abc"))
    probe = FakeProbe(
        metadata_sizes={a.location: 10, c.location: 30},
        dimensions={a.location: (1, 2), c.location: (3, 4)},
        failing=(b.location,),
    )
    out = MetadataCompleter(FakeAuthority(), probe).populate([a, b, c])
    assert [i.location for i in out] == [a.location, b.location, c.location]
    assert out[1] == b
    assert (out[0].size, out[0].width, out[0].height) == (10, 1, 2)
    assert (out[2].size, out[2].width, out[2].height) == (30, 3, 4)


def test_populated_items_in_a_mixed_batch_are_not_probed():
    done = make_item("file:///done.jpg", 1, 5, 5, 5)
    todo = make_item("file:///todo.jpg")
    probe = FakeProbe(metadata_sizes={todo.location: 9}, dimensions={todo.location: (2, 2)})
    out = MetadataCompleter(FakeAuthority(), probe).populate([done, todo])
    assert out[0] is done
    assert all(call[-1] == todo.location for call in probe.calls)


def test_local_locator_asks_authority_before_reading_stream():
    loc = "blob:abc.jpg"
    authority = FakeAuthority(local_sizes={loc: 777})
    probe = FakeProbe(sizes={loc: 1}, dimensions={loc: (8, 8)})
    (item,) = MetadataCompleter(authority, probe).populate([make_item(loc)])
    assert item.size == 777
    assert ("size_of", loc) in authority.calls
    assert ("resource_size", loc) not in probe.calls
    assert ("metadata_query", loc) not in probe.calls


def test_local_locator_unknown_to_authority_falls_back_to_stream():
    loc = "blob:gone.jpg"
    authority = FakeAuthority(local_sizes={loc: None})
    probe = FakeProbe(sizes={loc: 55}, dimensions={loc: (8, 8)})
    (item,) = MetadataCompleter(authority, probe).populate([make_item(loc)])
    assert item.size == 55


def test_foreign_locator_asks_metadata_then_stream():
    loc = "file:///sdcard/x.jpg"
    probe = FakeProbe(sizes={loc: 123}, metadata_sizes={loc: None}, dimensions={loc: (8, 8)})
    (item,) = MetadataCompleter(FakeAuthority(), probe).populate([make_item(loc)])
    assert item.size == 123
    order = [call[0] for call in probe.calls if call[0] != "dimensions_of"]
    assert order == ["metadata_query", "resource_size"]


def test_known_dimensions_are_kept_when_only_size_is_missing():
    loc = "file:///a.jpg"
    probe = FakeProbe(metadata_sizes={loc: 10})
    (item,) = MetadataCompleter(FakeAuthority(), probe).populate([make_item(loc, width=30, height=40)])
    assert (item.width, item.height, item.size) == (30, 40, 10)
    assert not any(call[0] == "dimensions_of" for call in probe.calls)


def test_first_known_size_skips_none_and_zero():
    assert first_known_size([lambda loc: None, lambda loc: 0, lambda loc: 5], "x") == 5
    assert first_known_size([lambda loc: None], "x") is None


def test_without_permission_items_pass_through():
    items = [make_item("file:///a.jpg")]
    probe = FakeProbe(metadata_sizes={"file:///a.jpg": 1})
    out = MetadataCompleter(FakeAuthority(), probe, FakePermission(False)).populate(items)
    assert out is items
    assert probe.calls == []


def test_empty_batch():
    assert MetadataCompleter(FakeAuthority(), FakeProbe()).populate([]) == []
