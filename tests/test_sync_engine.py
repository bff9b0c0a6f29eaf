"""
Tests for SyncEngine: watermark stop, incremental skip, retry, recursion.
"""

import json
import os
from datetime import datetime, timezone

import pytest

from conftest import item_dict, set_mtime
from shimo_sync.errors import ShimoAPIError, TransferError
from shimo_sync.models import Comment, Item
from shimo_sync.sync.engine import SyncEngine
from shimo_sync.sync.index import LocalFileIndex

NEW = "2024-01-01T00:00:00Z"
NEWER = "2024-02-01T00:00:00Z"
OLD = "2023-01-01T00:00:00Z"  # before the watermark


def use_listings(client, listings):
    client.list_files.side_effect = lambda folder: [Item.from_dict(d) for d in listings[folder]]


def fetched_guids(client):
    return [call.args[0].guid for call in client.get_download_url.call_args_list]


@pytest.fixture
def build_engine(temp_root, fake_client, fake_converter, make_config):
    sleeps = []

    def _build(config=None, provider=None):
        cfg = config or make_config()
        engine = SyncEngine(
            fake_client,
            provider or (lambda: cfg),
            LocalFileIndex(temp_root),
            converter=fake_converter,
            sleep=sleeps.append,
        )
        engine.sleeps = sleeps
        return engine
    return _build


class TestWatermark:

    def test_stops_before_later_siblings(self, build_engine, fake_client):
        use_listings(fake_client, {"root": [
            item_dict("first", NEWER),
            item_dict("stale", OLD),
            item_dict("after", NEW),
        ]})

        assert build_engine().run() is True
        assert fetched_guids(fake_client) == ["guid_first"]

    def test_item_exactly_at_watermark_stops(self, build_engine, fake_client):
        use_listings(fake_client, {"root": [item_dict("edge", "2023-11-14T22:13:20Z")]})
        assert build_engine().run() is True
        fake_client.get_download_url.assert_not_called()

    def test_stop_in_subfolder_ends_ancestors(self, build_engine, fake_client):
        use_listings(fake_client, {
            "root": [
                item_dict("Sub", NEWER, guid="sub", is_folder=True),
                item_dict("sibling", NEW),
            ],
            "sub": [item_dict("old", OLD)],
        })

        assert build_engine().run() is True
        fake_client.get_download_url.assert_not_called()
        assert [c.args[0] for c in fake_client.list_files.call_args_list] == ["root", "sub"]

    def test_old_folder_also_stops(self, build_engine, fake_client):
        use_listings(fake_client, {"root": [item_dict("Archive", OLD, is_folder=True)]})
        assert build_engine().run() is True
        assert fake_client.list_files.call_count == 1

    def test_full_walk_returns_false(self, build_engine, fake_client):
        use_listings(fake_client, {"root": [item_dict("only", NEW)]})
        assert build_engine().run() is False


class TestIncrementalSkip:

    def test_current_local_copy_is_skipped(self, temp_root, build_engine, fake_client, fake_converter):
        md = os.path.join(temp_root, "Doc.md")
        with open(md, "w") as f:
            f.write("local")
        set_mtime(md, datetime(2024, 6, 1, tzinfo=timezone.utc))
        use_listings(fake_client, {"root": [item_dict("Doc", NEW)]})

        engine = build_engine()
        engine.run()

        fake_client.get_download_url.assert_not_called()
        fake_client.download_file.assert_not_called()
        fake_converter.convert.assert_not_called()
        assert engine.stats["skipped"] == 1

    def test_equal_timestamps_count_as_current(self, temp_root, build_engine, fake_client):
        path = os.path.join(temp_root, "Sheet.xlsx")
        with open(path, "w") as f:
            f.write("x")
        set_mtime(path, datetime(2024, 1, 1, tzinfo=timezone.utc))
        use_listings(fake_client, {"root": [item_dict("Sheet", NEW, type="sheet")]})

        build_engine().run()
        fake_client.download_file.assert_not_called()

    def test_stale_local_copy_is_refetched(self, temp_root, build_engine, fake_client):
        md = os.path.join(temp_root, "Doc.md")
        with open(md, "w") as f:
            f.write("local")
        set_mtime(md, datetime(2023, 12, 1, tzinfo=timezone.utc))
        use_listings(fake_client, {"root": [item_dict("Doc", NEW)]})

        build_engine().run()
        assert fetched_guids(fake_client) == ["guid_Doc"]

    def test_nested_path_is_relative_to_root(self, temp_root, build_engine, fake_client):
        os.makedirs(os.path.join(temp_root, "Sub"))
        md = os.path.join(temp_root, "Sub", "Doc.md")
        with open(md, "w") as f:
            f.write("local")
        set_mtime(md, datetime(2024, 6, 1, tzinfo=timezone.utc))
        use_listings(fake_client, {
            "root": [item_dict("Sub", NEWER, guid="sub", is_folder=True)],
            "sub": [item_dict("Doc", NEW)],
        })

        build_engine().run()
        fake_client.get_download_url.assert_not_called()

    def test_same_name_in_other_folder_is_not_current(self, temp_root, build_engine, fake_client):
        md = os.path.join(temp_root, "Doc.md")
        with open(md, "w") as f:
            f.write("local")
        set_mtime(md, datetime(2024, 6, 1, tzinfo=timezone.utc))
        use_listings(fake_client, {
            "root": [item_dict("Sub", NEWER, guid="sub", is_folder=True)],
            "sub": [item_dict("Doc", NEW)],
        })

        build_engine().run()
        assert fetched_guids(fake_client) == ["guid_Doc"]


class TestRetry:

    def test_permanent_failure_attempted_retry_plus_one(self, build_engine, fake_client, make_config):
        fake_client.get_download_url.side_effect = TransferError("reset")
        use_listings(fake_client, {"root": [item_dict("Doc", NEW)]})

        engine = build_engine(make_config(retry=3, sleep=100))
        engine.run()

        assert fake_client.get_download_url.call_count == 4
        assert engine.stats["failed"] == 1
        # one listing throttle, four per-attempt throttles, three backoffs
        assert engine.sleeps.count(0.2) == 3
        assert engine.sleeps.count(0.1) == 5

    def test_failure_does_not_stop_siblings(self, build_engine, fake_client, make_config):
        fake_client.get_download_url.side_effect = [
            ShimoAPIError("boom"), ShimoAPIError("boom"), "https://cdn/ok",
        ]
        use_listings(fake_client, {"root": [item_dict("Bad", NEWER), item_dict("Good", NEW)]})

        engine = build_engine(make_config(retry=1))
        engine.run()

        assert engine.stats == {"synced": 1, "skipped": 0, "unsupported": 0, "failed": 1, "folders": 0}

    def test_transient_failure_recovers(self, build_engine, fake_client):
        fake_client.get_download_url.side_effect = [ShimoAPIError("timeout"), "https://cdn/ok"]
        use_listings(fake_client, {"root": [item_dict("Doc", NEW)]})

        engine = build_engine()
        engine.run()
        assert engine.stats["synced"] == 1

    def test_comment_failure_does_not_retry(self, build_engine, fake_client):
        fake_client.list_comments.side_effect = ShimoAPIError("comments down")
        use_listings(fake_client, {"root": [item_dict("Doc", NEW)]})

        engine = build_engine()
        engine.run()

        assert fake_client.get_download_url.call_count == 1
        assert engine.stats["synced"] == 1


class TestItemHandling:

    def test_docx_converted_and_source_removed(self, temp_root, build_engine, fake_client, fake_converter):
        fake_client.list_comments.return_value = []
        use_listings(fake_client, {"root": [item_dict("周报: 1/2", NEW)]})

        build_engine().run()

        source = os.path.join(temp_root, "周报- 1-2.docx")
        fake_converter.convert.assert_called_once_with(source, os.path.join(temp_root, "周报- 1-2.md"))
        assert not os.path.exists(source)
        assert os.path.exists(os.path.join(temp_root, "周报- 1-2.md"))
        with open(os.path.join(temp_root, "周报- 1-2", "comments.json"), encoding="utf-8") as f:
            assert json.load(f) == []

    def test_keep_source(self, temp_root, build_engine, fake_client, make_config):
        use_listings(fake_client, {"root": [item_dict("Doc", NEW)]})
        build_engine(make_config(keep_source=True)).run()
        assert os.path.exists(os.path.join(temp_root, "Doc.docx"))

    def test_sheet_kept_without_conversion(self, temp_root, build_engine, fake_client, fake_converter):
        use_listings(fake_client, {"root": [item_dict("Budget", NEW, type="sheet")]})
        build_engine().run()
        fake_converter.convert.assert_not_called()
        assert os.path.exists(os.path.join(temp_root, "Budget.xlsx"))

    def test_unsupported_type_skipped(self, build_engine, fake_client):
        use_listings(fake_client, {"root": [item_dict("Form", NEWER, type="form"), item_dict("Doc", NEW)]})
        engine = build_engine()
        engine.run()
        assert fetched_guids(fake_client) == ["guid_Doc"]
        assert engine.stats["unsupported"] == 1
        assert engine.stats["failed"] == 0

    def test_bad_timestamp_skips_only_that_item(self, build_engine, fake_client):
        use_listings(fake_client, {"root": [item_dict("Broken", "not-a-date"), item_dict("Doc", NEW)]})
        engine = build_engine()
        assert engine.run() is False
        assert fetched_guids(fake_client) == ["guid_Doc"]

    def test_numeric_name_does_not_stop_siblings(self, temp_root, build_engine, fake_client):
        use_listings(fake_client, {"root": [item_dict(12345, NEWER), item_dict("Doc", NEW)]})
        engine = build_engine()
        assert engine.run() is False
        assert fetched_guids(fake_client) == ["guid_12345", "guid_Doc"]
        assert os.path.exists(os.path.join(temp_root, "12345.md"))
        assert engine.stats["failed"] == 0

    def test_malformed_comment_author_is_not_fatal(self, temp_root, build_engine, fake_client):
        fake_client.list_comments.side_effect = lambda guid: [
            Comment.from_dict({"commentGuid": "c1", "selectionGuid": "s1", "User": "bob"}),
        ]
        use_listings(fake_client, {"root": [item_dict("Doc", NEWER), item_dict("Next", NEW)]})

        engine = build_engine()
        assert engine.run() is False
        assert engine.stats["synced"] == 2
        with open(os.path.join(temp_root, "Doc", "comments.json"), encoding="utf-8") as f:
            assert json.load(f)[0]["comments"][0]["name"] == ""

    def test_non_recursive_skips_folders(self, temp_root, build_engine, fake_client, make_config):
        use_listings(fake_client, {"root": [item_dict("Sub", NEWER, guid="sub", is_folder=True)]})
        build_engine(make_config(recursive=False)).run()
        assert fake_client.list_files.call_count == 1
        assert not os.path.exists(os.path.join(temp_root, "Sub"))

    def test_folder_creation_failure_aborts_only_that_branch(self, temp_root, build_engine, fake_client):
        # A regular file where the folder should go makes makedirs fail
        with open(os.path.join(temp_root, "Sub"), "w") as f:
            f.write("in the way")
        use_listings(fake_client, {
            "root": [item_dict("Sub", NEWER, guid="sub", is_folder=True), item_dict("Doc", NEW)],
            "sub": [item_dict("Inner", NEW)],
        })

        engine = build_engine()
        engine.run()

        assert fetched_guids(fake_client) == ["guid_Doc"]
        assert engine.stats["failed"] == 1

    def test_subfolder_listing_failure_isolated(self, build_engine, fake_client):
        def listing(folder):
            if folder == "sub":
                raise ShimoAPIError("502")
            return [Item.from_dict(item_dict("Sub", NEWER, guid="sub", is_folder=True)),
                    Item.from_dict(item_dict("Doc", NEW))]
        fake_client.list_files.side_effect = listing

        build_engine().run()
        assert fetched_guids(fake_client) == ["guid_Doc"]

    def test_root_listing_failure_propagates(self, build_engine, fake_client):
        fake_client.list_files.side_effect = ShimoAPIError("401")
        with pytest.raises(ShimoAPIError):
            build_engine().run()

    def test_throttle_before_listing(self, build_engine, fake_client, make_config):
        use_listings(fake_client, {"root": []})
        engine = build_engine(make_config(sleep=250))
        engine.run()
        assert engine.sleeps == [0.25]


def test_config_reload_reaches_in_flight_recursion(build_engine, fake_client, make_config):
    holder = {"config": make_config(recursive=True)}

    def listing(folder):
        # Simulates the watcher swapping the snapshot while root is being walked
        holder["config"] = make_config(recursive=False)
        return [Item.from_dict(item_dict("Sub", NEWER, guid="sub", is_folder=True))]
    fake_client.list_files.side_effect = listing

    build_engine(provider=lambda: holder["config"]).run()
    assert fake_client.list_files.call_count == 1


def test_up_to_date_then_watermark_scenario(temp_root, build_engine, fake_client):
    """Skip the current file, stop at the stale one, never touch what follows."""
    md = os.path.join(temp_root, "Current.md")
    with open(md, "w") as f:
        f.write("local")
    set_mtime(md, datetime(2024, 6, 1, tzinfo=timezone.utc))
    use_listings(fake_client, {"root": [
        item_dict("Current", NEW),
        item_dict("Stale", OLD),
        item_dict("Never", NEWER),
    ]})

    engine = build_engine()
    assert engine.run() is True

    fake_client.get_download_url.assert_not_called()
    fake_client.download_file.assert_not_called()
    assert engine.stats["skipped"] == 1
