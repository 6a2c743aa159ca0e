from gitpatch.patch.models import AddFile, ChangeType, DeleteFile, MalformedFile, ModifyFile, RenameFile
from gitpatch.patch.parser import parse_patch


def test_pure_rename_without_file_headers() -> None:
    diff = """diff --git a/old.txt b/renamed.txt
similarity index 100%
rename from old.txt
rename to renamed.txt
"""
    files = parse_patch(diff)

    assert len(files) == 1
    fp = files[0]
    assert isinstance(fp, RenameFile)
    assert fp.old_path == "old.txt"
    assert fp.new_path == "renamed.txt"
    assert fp.hunks == ()


def test_rename_with_changes() -> None:
    diff = """diff --git a/src/a.py b/src/b.py
similarity index 90%
rename from src/a.py
rename to src/b.py
index 1..2 100644
--- a/src/a.py
+++ b/src/b.py
@@ -1,2 +1,2 @@
 x = 1
-y = 2
+y = 3
"""
    fp = parse_patch(diff)[0]

    assert isinstance(fp, RenameFile)
    assert (fp.old_path, fp.new_path) == ("src/a.py", "src/b.py")
    assert len(fp.hunks) == 1


def test_rename_inferred_from_differing_paths() -> None:
    diff = """--- a/before.txt
+++ b/after.txt
@@ -1 +1 @@
-a
+b
"""
    fp = parse_patch(diff)[0]

    assert isinstance(fp, RenameFile)
    assert fp.change_type is ChangeType.RENAME


def test_consecutive_pure_renames_are_separate() -> None:
    diff = """diff --git a/one b/uno
similarity index 100%
rename from one
rename to uno
diff --git a/two b/dos
similarity index 100%
rename from two
rename to dos
"""
    files = parse_patch(diff)

    assert [(fp.old_path, fp.new_path) for fp in files] == [("one", "uno"), ("two", "dos")]


def test_empty_new_file_uses_git_header_path() -> None:
    diff = """diff --git a/empty.txt b/empty.txt
new file mode 100644
index 0000000..e69de29
"""
    fp = parse_patch(diff)[0]

    assert isinstance(fp, AddFile)
    assert fp.new_path == "empty.txt"
    assert fp.hunks == ()


def test_empty_deleted_file_uses_git_header_path() -> None:
    diff = """diff --git a/empty.txt b/empty.txt
deleted file mode 100644
index e69de29..0000000
"""
    fp = parse_patch(diff)[0]

    assert isinstance(fp, DeleteFile)
    assert fp.old_path == "empty.txt"


def test_rename_to_same_path_becomes_modify() -> None:
    diff = """diff --git a/same.txt b/same.txt
rename from same.txt
rename to same.txt
--- a/same.txt
+++ b/same.txt
@@ -1 +1 @@
-a
+b
"""
    fp = parse_patch(diff)[0]

    assert isinstance(fp, ModifyFile)
    assert fp.target_path == "same.txt"


def test_add_without_any_path_is_malformed() -> None:
    diff = """diff --git x y
new file mode 100644
--- /dev/null
+++ /dev/null
@@ -0,0 +1 @@
+orphan
"""
    fp = parse_patch(diff)[0]

    assert isinstance(fp, MalformedFile)
    assert fp.declared is ChangeType.ADD
    assert fp.reason == "Add missing new path"
    assert fp.display_path == ""


def test_staged_hints_reset_between_sections() -> None:
    diff = """diff --git a/new.txt b/new.txt
new file mode 100644
--- /dev/null
+++ b/new.txt
@@ -0,0 +1 @@
+n
diff --git a/mod.txt b/mod.txt
--- a/mod.txt
+++ b/mod.txt
@@ -1 +1 @@
-a
+b
"""
    files = parse_patch(diff)

    assert isinstance(files[0], AddFile)
    assert isinstance(files[1], ModifyFile)
