"""Tests for JSONL persistence of the three collections."""

from __future__ import annotations

from learnpath.config.schema import StoreConfig
from learnpath.data_models import Student, Teacher
from learnpath.learning import ActivityStatus, LearningPath, Progress
from learnpath.storage import CollectionKind, CollectionStore


def test_missing_collections_load_empty(temp_data_dir):
    store = CollectionStore(temp_data_dir)
    for kind in CollectionKind:
        assert store.load(kind) == []


def test_learning_paths_round_trip_in_order(temp_data_dir, teacher, full_path):
    store = CollectionStore(temp_data_dir)
    paths = [full_path] + [
        LearningPath(
            title=f"Path {idx}",
            description="Generated",
            objectives="",
            difficulty_level=(idx % 5) + 1,
            creator=teacher,
        )
        for idx in range(4)
    ]

    assert store.save(CollectionKind.LEARNING_PATHS, paths)
    loaded = store.load(CollectionKind.LEARNING_PATHS)

    assert len(loaded) == len(paths)
    assert loaded == paths
    assert [p.title for p in loaded] == [p.title for p in paths]
    assert loaded[0].version == full_path.version
    assert loaded[0].duration == full_path.duration
    assert [type(a) for a in loaded[0].activities] == [type(a) for a in full_path.activities]


def test_users_keep_their_role(temp_data_dir, teacher, student):
    store = CollectionStore(temp_data_dir)
    store.save(CollectionKind.USERS, [teacher, student])

    loaded = store.load(CollectionKind.USERS)

    assert isinstance(loaded[0], Teacher)
    assert isinstance(loaded[1], Student)
    assert loaded[1].authenticate("pw123")


def test_progress_lookups_survive_independent_reload(temp_data_dir, student, full_path, sample_quiz):
    store = CollectionStore(temp_data_dir)
    progress = Progress(student=student, learning_path=full_path)
    progress.update_activity_status(sample_quiz, ActivityStatus.FAILED)

    store.save(CollectionKind.LEARNING_PATHS, [full_path])
    store.save(CollectionKind.PROGRESS_RECORDS, [progress])

    reloaded_paths = store.load(CollectionKind.LEARNING_PATHS)
    reloaded_progress = store.load(CollectionKind.PROGRESS_RECORDS)[0]
    quiz_from_path = reloaded_paths[0].find_activity(sample_quiz.title)

    assert quiz_from_path is not reloaded_progress.learning_path.find_activity(sample_quiz.title)
    assert reloaded_progress.get_activity_status(quiz_from_path) is ActivityStatus.FAILED


def test_custom_file_names(temp_data_dir, teacher):
    store = CollectionStore(temp_data_dir, StoreConfig(users_file="accounts.jsonl"))
    store.save(CollectionKind.USERS, [teacher])

    assert (temp_data_dir / "accounts.jsonl").exists()


def test_failed_save_returns_false(temp_data_dir, teacher):
    store = CollectionStore(temp_data_dir)
    store.path_for(CollectionKind.USERS).mkdir()

    assert not store.save(CollectionKind.USERS, [teacher])
    assert list(temp_data_dir.glob("*.tmp")) == []


def test_blank_lines_are_skipped(temp_data_dir, teacher):
    store = CollectionStore(temp_data_dir)
    path = store.path_for(CollectionKind.USERS)
    path.write_text("\n" + teacher.model_dump_json() + "\n\n", encoding="utf-8")

    assert store.load(CollectionKind.USERS) == [teacher]
