"""Tests for corpus collection and the filesystem document store."""

import pytest

from todo_collector.collector import collect, is_excluded
from todo_collector.document_store import FileDocumentStore, base_name
from todo_collector.protocol import DocumentStoreProtocol
from todo_collector.types import ChecklistItem


class TestIsExcluded:
    def test_folder_prefix(self):
        assert is_excluded("templates/a.md", ["templates"])

    def test_nested(self):
        assert is_excluded("archive/2024/old.md", ["archive"])

    def test_exact_match(self):
        assert is_excluded("templates", ["templates"])

    def test_prefix_must_end_at_separator(self):
        assert not is_excluded("templates-old/a.md", ["templates"])

    def test_empty_entries_ignored(self):
        assert not is_excluded("a.md", ["", "templates"])


class TestCollect:
    """Tests for collect() against a vault directory."""

    def test_excluded_folder_skipped(self, vault, write_doc):
        write_doc("templates/a.md", "- [ ] X\n")
        write_doc("b.md", "- [ ] Y\n")
        items = collect(FileDocumentStore(vault), ["templates"], "TODO.md")
        assert items == [ChecklistItem("Y", "b")]

    def test_output_document_skipped(self, vault, write_doc):
        write_doc("TODO.md", "- [ ] Already aggregated [[Notes]]\n")
        write_doc("Notes.md", "- [ ] Real task\n")
        items = collect(FileDocumentStore(vault), [], "TODO.md")
        assert [i.text for i in items] == ["Real task"]

    def test_enumeration_then_line_order(self, vault, write_doc):
        write_doc("b.md", "- [ ] B1\n- [ ] B2\n")
        write_doc("a.md", "- [ ] A1\n")
        items = collect(FileDocumentStore(vault), [], "TODO.md")
        assert [i.text for i in items] == ["A1", "B1", "B2"]

    def test_duplicates_kept(self, vault, write_doc):
        write_doc("Notes.md", "- [ ] Same\n- [ ] Same\n")
        items = collect(FileDocumentStore(vault), [], "TODO.md")
        assert len(items) == 2

    def test_source_is_base_name(self, vault, write_doc):
        write_doc("projects/Work.md", "  - [ ] Nested task\n")
        items = collect(FileDocumentStore(vault), [], "TODO.md")
        assert items == [ChecklistItem("Nested task", "Work")]

    def test_empty_corpus(self, vault):
        assert collect(FileDocumentStore(vault), [], "TODO.md") == []

    def test_read_failure_aborts(self, memory_store):
        memory_store.docs.update({"a.md": "- [ ] A\n", "b.md": "- [ ] B\n"})
        memory_store.fail_reads.add("b.md")
        with pytest.raises(OSError):
            collect(memory_store, [], "TODO.md")


class TestFileDocumentStore:
    """Tests for listing and link resolution."""

    def test_lists_markdown_only(self, vault, write_doc):
        write_doc("a.md", "")
        write_doc("notes.txt", "- [ ] not markdown\n")
        write_doc("sub/b.md", "")
        assert FileDocumentStore(vault).list_documents() == ["a.md", "sub/b.md"]

    def test_hidden_entries_skipped(self, vault, write_doc):
        write_doc(".todo-collector/x.md", "- [ ] hidden\n")
        write_doc(".obsidian/y.md", "")
        write_doc(".draft.md", "")
        write_doc("visible.md", "")
        assert FileDocumentStore(vault).list_documents() == ["visible.md"]

    def test_resolve_by_base_name(self, vault, write_doc):
        write_doc("projects/Notes.md", "")
        assert FileDocumentStore(vault).resolve_link("Notes") == "projects/Notes.md"

    def test_resolve_case_insensitive(self, vault, write_doc):
        write_doc("Notes.md", "")
        assert FileDocumentStore(vault).resolve_link("notes") == "Notes.md"

    def test_resolve_prefers_shallowest(self, vault, write_doc):
        write_doc("a/deep/Notes.md", "")
        write_doc("z/Notes.md", "")
        assert FileDocumentStore(vault).resolve_link("Notes") == "z/Notes.md"

    def test_resolve_path_form(self, vault, write_doc):
        write_doc("a/Notes.md", "")
        write_doc("Notes.md", "")
        store = FileDocumentStore(vault)
        assert store.resolve_link("a/Notes") == "a/Notes.md"
        assert store.resolve_link("Notes.md") == "Notes.md"

    def test_resolve_missing(self, vault):
        assert FileDocumentStore(vault).resolve_link("Nowhere") is None

    def test_create_makes_parents(self, vault):
        store = FileDocumentStore(vault)
        store.create("lists/TODO.md", "content")
        assert (vault / "lists" / "TODO.md").read_text(encoding="utf-8") == "content"

    def test_base_name(self):
        assert base_name("notes/Work.md") == "Work"
        assert base_name("Inbox.md") == "Inbox"

    def test_satisfies_protocol(self, vault, memory_store):
        assert isinstance(FileDocumentStore(vault), DocumentStoreProtocol)
        assert isinstance(memory_store, DocumentStoreProtocol)
