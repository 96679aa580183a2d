"""
Tests for merging two divergent documents.

Covers union completeness, the created_at tie-break (including exact ties),
category precedence, deterministic ordering and input immutability.
"""

from tests.helpers.factories import BASE_TIME, at, make_category, make_document, make_task
from todobi.services.merge import merge_documents


MERGE_TIME = at(days=30)


class TestMergeTasks:

    def test_identical_documents_merge_to_same_content(self):
        document = make_document(
            categories=[make_category("work"), make_category("home")],
            tasks=[make_task("1"), make_task("2", category_id="home", notes="x")],
        )

        merged = merge_documents(document, document.clone(), now=MERGE_TIME)

        assert merged.content_equals(document)
        assert merged.last_update == MERGE_TIME

    def test_one_sided_tasks_carried_unchanged(self):
        local_only = make_task("L", content="local only", notes="n")
        remote_only = make_task("R", content="remote only", done=True, completed_at=at(minutes=2))
        local = make_document(tasks=[local_only])
        remote = make_document(tasks=[remote_only])

        merged = merge_documents(local, remote, now=MERGE_TIME)

        assert merged.get_task("L") == local_only
        assert merged.get_task("R") == remote_only

    def test_later_created_at_wins_entirely(self):
        older = make_task("1", content="older", created_at=at(minutes=1), notes="old notes")
        newer = make_task("1", content="newer", created_at=at(minutes=2), done=True,
                          completed_at=at(minutes=3))

        merged_remote_newer = merge_documents(
            make_document(tasks=[older]), make_document(tasks=[newer]), now=MERGE_TIME
        )
        merged_local_newer = merge_documents(
            make_document(tasks=[newer]), make_document(tasks=[older]), now=MERGE_TIME
        )

        assert merged_remote_newer.get_task("1") == newer
        assert merged_local_newer.get_task("1") == newer

    def test_exact_tie_keeps_local(self):
        local_task = make_task("1", content="local", created_at=BASE_TIME)
        remote_task = make_task("1", content="remote", created_at=BASE_TIME)

        merged = merge_documents(
            make_document(tasks=[local_task]), make_document(tasks=[remote_task]), now=MERGE_TIME
        )

        assert merged.get_task("1").content == "local"

    def test_example_scenario(self):
        t1, t2, t3 = at(minutes=1), at(minutes=2), at(minutes=3)
        local = make_document(tasks=[
            make_task("A", created_at=t1, done=False),
            make_task("B", created_at=t3),
        ])
        remote = make_document(tasks=[
            make_task("A", created_at=t1, done=True, completed_at=t2),
            make_task("C", created_at=t2),
        ])

        merged = merge_documents(local, remote, now=MERGE_TIME)

        assert [t.id for t in merged.tasks] == ["A", "B", "C"]
        assert merged.get_task("A").done is False


class TestMergeCategories:

    def test_remote_name_wins_on_collision(self):
        local = make_document(categories=[make_category("work", "Work")])
        remote = make_document(categories=[make_category("work", "Job")])

        merged = merge_documents(local, remote, now=MERGE_TIME)

        assert [(c.id, c.name) for c in merged.categories] == [("work", "Job")]

    def test_union_order_is_local_first_then_remote_only(self):
        local = make_document(categories=[make_category("b"), make_category("a")])
        remote = make_document(categories=[make_category("c"), make_category("a", "A2")])

        merged = merge_documents(local, remote, now=MERGE_TIME)

        assert [c.id for c in merged.categories] == ["b", "a", "c"]
        assert merged.get_category("a").name == "A2"


class TestMergeMetadata:

    def test_version_from_local(self):
        local = make_document()
        local.version = "1.3.0"
        remote = make_document()
        remote.version = "1.0.0"

        assert merge_documents(local, remote, now=MERGE_TIME).version == "1.3.0"

    def test_setup_flag_is_or_of_both(self):
        local = make_document(github_setup_complete=False)
        remote = make_document(github_setup_complete=True)

        assert merge_documents(local, remote, now=MERGE_TIME).github_setup_complete is True

    def test_last_update_defaults_to_now(self):
        merged = merge_documents(make_document(), make_document())
        assert merged.last_update > BASE_TIME

    def test_inputs_not_modified(self):
        local = make_document(tasks=[make_task("1", content="local")])
        remote = make_document(tasks=[make_task("2", content="remote")])
        local_before = local.fingerprint()
        remote_before = remote.fingerprint()

        merged = merge_documents(local, remote, now=MERGE_TIME)
        merged.tasks[0].content = "edited"

        assert local.fingerprint() == local_before
        assert remote.fingerprint() == remote_before

    def test_deterministic(self):
        local = make_document(tasks=[make_task("1"), make_task("3")])
        remote = make_document(tasks=[make_task("2"), make_task("1", created_at=at(minutes=5))])

        first = merge_documents(local, remote, now=MERGE_TIME)
        second = merge_documents(local, remote, now=MERGE_TIME)

        assert first.to_json_bytes() == second.to_json_bytes()
