import json

from doc_consolidator.core.settings import (
    DEFAULT_FILENAME_STEM, OUTPUT_FILENAME_KEY, OutputPreference, PreferenceStore
)


def test_default_when_no_file(preference_store):
    preference = OutputPreference.load(preference_store)

    assert preference.filename_stem == DEFAULT_FILENAME_STEM == "merged"
    assert not preference_store.path.exists()


def test_set_stem_persists(preference_store):
    preference = OutputPreference.load(preference_store)

    preference.set_stem("quarterly")

    saved = json.loads(preference_store.path.read_text(encoding="utf-8"))
    assert saved == {OUTPUT_FILENAME_KEY: "quarterly"}
    assert OutputPreference.load(PreferenceStore(preference_store.path)).filename_stem == "quarterly"


def test_unchanged_stem_is_not_written(preference_store):
    preference = OutputPreference.load(preference_store)

    preference.set_stem(DEFAULT_FILENAME_STEM)

    assert not preference_store.path.exists()


def test_corrupt_file_falls_back_to_default(preference_store):
    preference_store.path.parent.mkdir(parents=True)
    preference_store.path.write_text("{not json", encoding="utf-8")

    assert OutputPreference.load(preference_store).filename_stem == DEFAULT_FILENAME_STEM


def test_non_object_file_falls_back_to_default(preference_store):
    preference_store.path.parent.mkdir(parents=True)
    preference_store.path.write_text("[1, 2]", encoding="utf-8")

    assert preference_store.get_preference(OUTPUT_FILENAME_KEY) is None


def test_non_string_values_are_ignored(preference_store):
    preference_store.path.parent.mkdir(parents=True)
    preference_store.path.write_text(json.dumps({OUTPUT_FILENAME_KEY: 42}), encoding="utf-8")

    assert OutputPreference.load(preference_store).filename_stem == DEFAULT_FILENAME_STEM


def test_other_keys_are_preserved(preference_store):
    preference_store.path.parent.mkdir(parents=True)
    preference_store.path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    assert preference_store.set_preference(OUTPUT_FILENAME_KEY, "combined")

    saved = json.loads(preference_store.path.read_text(encoding="utf-8"))
    assert saved == {"theme": "dark", OUTPUT_FILENAME_KEY: "combined"}


def test_preference_without_store_stays_in_memory():
    preference = OutputPreference()

    preference.set_stem("scratch")

    assert preference.filename_stem == "scratch"
