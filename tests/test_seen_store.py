import json

from seen_store import (
    FeedProgress,
    JsonFileStore,
    SeenStore,
    decode_progress,
    encode_progress,
)


def test_codec_round_trip_restores_a_real_set():
    progress = FeedProgress(seen_pages={5, 1, 3}, total_pages=7, exhausted=False)

    record = encode_progress(progress)
    assert record["seenPages"] == [1, 3, 5]

    decoded = decode_progress(json.loads(json.dumps(record)))
    assert isinstance(decoded.seen_pages, set)
    assert decoded.seen_pages == {1, 3, 5}
    assert decoded == progress


def test_decode_defaults_missing_fields():
    assert decode_progress({}) == FeedProgress(seen_pages=set(), total_pages=None, exhausted=False)


def test_save_then_load_survives_a_new_store_instance(tmp_path):
    path = tmp_path / "state.json"
    state = {
        '{"stars":"700...2000"}': FeedProgress(seen_pages={1, 2}, total_pages=3),
        '{"stars":">50000"}': FeedProgress(seen_pages=set(), total_pages=0, exhausted=True),
    }

    SeenStore(JsonFileStore(path)).save(state)
    loaded = SeenStore(JsonFileStore(path)).load()

    assert loaded == state


def test_load_returns_empty_mapping_when_nothing_stored(tmp_path):
    store = SeenStore(JsonFileStore(tmp_path / "missing.json"))

    assert store.load() == {}


def test_load_discards_undecodable_state(tmp_path):
    backend = JsonFileStore(tmp_path / "state.json")
    backend.set("github_seen_repositories", "{not json")

    assert SeenStore(backend).load() == {}


def test_clear_drops_only_the_progress_key(tmp_path):
    backend = JsonFileStore(tmp_path / "state.json")
    backend.set("other", "keep me")
    store = SeenStore(backend)
    store.save({"k": FeedProgress(seen_pages={1}, total_pages=1, exhausted=True)})

    store.clear()

    assert store.load() == {}
    assert backend.get("other") == "keep me"


def test_json_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("garbage", encoding="utf-8")

    backend = JsonFileStore(path)
    assert backend.get("anything") is None

    backend.set("key", "value")
    assert json.loads(path.read_text(encoding="utf-8")) == {"key": "value"}
